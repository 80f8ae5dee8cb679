from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional


PLACEHOLDER_NAME = "Candidate"


class _Frozen(BaseModel):
    """Immutable value object. Consumers copy-on-write via model_copy(update=...)."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Bullet(_Frozen):
    text: str


class Link(_Frozen):
    label: str = ""
    url: str


class Contacts(_Frozen):
    email: str = ""
    phone: str = ""
    linkedin: str = ""
    website: str = ""


class Candidate(_Frozen):
    name: str = PLACEHOLDER_NAME  # never empty
    title: str = ""  # headline
    summary: str = ""
    location: str = ""  # "City, Country" or Remote/Hybrid/Onsite
    contacts: Contacts = Field(default_factory=Contacts)
    links: List[Link] = Field(default_factory=list)


class ExperienceItem(_Frozen):
    employer: str = ""
    role: str = ""
    start: str = ""
    end: str = ""  # "Present" for ongoing roles
    location: str = ""
    bullets: List[Bullet] = Field(default_factory=list)


class EducationItem(_Frozen):
    school: str = ""
    degree: str = ""
    field_of_study: str = Field(default="", alias="fieldOfStudy")
    eqf_level: str = Field(default="", alias="eqfLevel")
    start: str = ""
    end: str = ""
    location: str = ""
    bullets: List[Bullet] = Field(default_factory=list)  # honours, GPA, thesis...


class LanguageItem(_Frozen):
    name: str
    level: str = ""  # CEFR code, Native, Fluent...


class CertificationItem(_Frozen):
    name: str
    issuer: str = ""
    date: str = ""


class CVMeta(_Frozen):
    locale: str = "en"
    source: str = ""


class CVRecord(_Frozen):
    candidate: Candidate = Field(default_factory=Candidate)
    skills: List[str] = Field(default_factory=list)
    experience: List[ExperienceItem] = Field(default_factory=list)
    education: List[EducationItem] = Field(default_factory=list)
    languages: List[LanguageItem] = Field(default_factory=list)
    certifications: List[CertificationItem] = Field(default_factory=list)
    meta: CVMeta = Field(default_factory=CVMeta)


class FuseRequest(BaseModel):
    """Body of POST /fuse. Both sources are normalized before fusing."""
    primary: Dict[str, Any] = Field(default_factory=dict, description="Primary structured candidate (any known shape)")
    assist: Optional[Dict[str, Any]] = Field(default=None, description="Assist candidate; parsed from source_text when omitted")
    source_text: Optional[str] = Field(default=None, description="Raw résumé text for the rule-based assist path")
    window_years: Optional[int] = Field(default=None, ge=0, description="Override of the same-job year window")
