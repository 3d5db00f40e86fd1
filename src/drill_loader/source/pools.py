"""Value pools for synthetic drill events."""

EVENT_TYPES = (
    "[CLY]_session",
    "[CLY]_view",
    "[CLY]_action",
    "[CLY]_crash",
    "[CLY]_star_rating",
    "[CLY]_push",
)
CMP_CHANNELS = ("Organic", "Direct", "Email", "Paid")
SG_KEYS = tuple(f"k{i:04d}" for i in range(1, 8_001))
CUSTOM_POOL = (
    {"Account Types": "Savings"},
    {"Account Types": "Investment"},
    {"Communication Preference": "Phone"},
    {"Communication Preference": "Email"},
    {"Credit Cards": "Premium"},
    {"Credit Cards": "Basic"},
    {"Customer Type": "Retail"},
    {"Customer Type": "Business"},
    {"Total Assets": "$0 - $50,000"},
    {"Total Assets": "$50,000 - $500,000"},
)
LANG_CODES = ("en", "de", "fr", "es", "pt", "ru", "zh", "ja", "ko", "hi")
COUNTRY_CODES = (
    "US", "DE", "FR", "ES", "PT", "RU", "CN", "JP", "KR", "IN", "GB", "CA", "AU", "BR", "MX",
)
PLATFORMS = ("Macintosh", "Windows", "Linux", "iOS", "Android")
OS_NAMES = ("MacOS", "Windows", "Android", "iOS")
RESOLUTIONS = ("360x640", "768x1024", "1920x1080")
BROWSERS = ("Chrome", "Firefox", "Edge", "Safari")
SOURCES = ("MacOS", "Windows", "Android", "iOS", "Web")
SOURCE_CHANNELS = ("Direct", "Search", "Email", "Social")
VIEW_NAMES = ("Settings", "Home", "Profile", "Dashboard", "ProductPage", "Checkout")
SAMPLE_WORDS = ("lorem", "ipsum", "dolor", "sit", "amet", "consectetur", "adipiscing", "elit")
POSTFIXES = ("S", "V", "A")

# segment keys picked per event
SG_MIN_KEYS = 15
SG_MAX_KEYS = 20
