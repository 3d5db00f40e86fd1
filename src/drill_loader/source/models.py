"""
Pydantic models for synthetic drill events.

Field names match the drill_events table columns; `_id` is exposed through an alias.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Dict


class UserProperties(BaseModel):
    """Device/user snapshot attached to every event (`up` column)."""

    fs: int
    ls: int
    sc: int
    d: str
    cty: str = "Unknown"
    rgn: str = "Unknown"
    cc: str
    p: str
    pv: str
    av: str
    c: str = "Unknown"
    r: str
    brw: str
    brwv: str
    la: str
    src: str
    src_ch: str
    lv: str
    hour: int
    dow: int


class DrillEvent(BaseModel):
    """One drill event row."""

    model_config = ConfigDict(populate_by_name=True)

    a: str
    e: str
    uid: int
    did: str
    lsid: str
    id: str = Field(alias="_id")
    ts: int
    up: UserProperties
    custom: Dict[str, str]
    cmp: Dict[str, str]
    sg: Dict[str, str]
    c: int
    s: float
    dur: int
