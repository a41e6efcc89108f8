"""OP Facts — the canonical case-fact structure for one session."""

from enum import Enum
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for models exchanged with the browser: camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RelationshipCategory(str, Enum):
    """Qualifying relationships under FCA §812."""
    SPOUSE = "spouse"
    FORMER_SPOUSE = "former_spouse"
    PARENT_CHILD = "parent_child"
    CHILD_PARENT = "child_parent"
    INTIMATE_PARTNER = "intimate_partner"
    FORMER_INTIMATE_PARTNER = "former_intimate_partner"
    PERSONS_WITH_CHILD_IN_COMMON = "persons_with_child_in_common"
    MEMBERS_SAME_HOUSEHOLD = "members_same_household"
    OTHER_FAMILY = "other_family"


class LivingSituation(str, Enum):
    LIVING_TOGETHER = "living_together"
    RECENTLY_SEPARATED = "recently_separated"
    LIVING_APART = "living_apart"
    OTHER = "other"


class ReliefType(str, Enum):
    STAY_AWAY = "stay_away"
    NO_CONTACT = "no_contact"
    EXCLUSIVE_OCCUPANCY = "exclusive_occupancy"
    TEMPORARY_CUSTODY = "temporary_custody"
    NO_FIREARMS = "no_firearms"
    OTHER = "other"


RELATIONSHIP_LABELS = {
    RelationshipCategory.SPOUSE: "Current spouse",
    RelationshipCategory.FORMER_SPOUSE: "Former spouse",
    RelationshipCategory.PARENT_CHILD: "Parent of respondent / child relationship",
    RelationshipCategory.CHILD_PARENT: "Child of respondent / parent relationship",
    RelationshipCategory.INTIMATE_PARTNER: "Current intimate partner",
    RelationshipCategory.FORMER_INTIMATE_PARTNER: "Former intimate partner",
    RelationshipCategory.PERSONS_WITH_CHILD_IN_COMMON: "Person with a child in common",
    RelationshipCategory.MEMBERS_SAME_HOUSEHOLD: "Members of the same household",
    RelationshipCategory.OTHER_FAMILY: "Other family member by blood or marriage",
}

LIVING_SITUATION_LABELS = {
    LivingSituation.LIVING_TOGETHER: "Currently living together",
    LivingSituation.RECENTLY_SEPARATED: "Recently separated",
    LivingSituation.LIVING_APART: "Living apart",
    LivingSituation.OTHER: "Other",
}

RELIEF_LABELS = {
    ReliefType.STAY_AWAY: "Stay away from petitioner (and children/home/work/school)",
    ReliefType.NO_CONTACT: "No contact (no calls, texts, emails, third-party contact)",
    ReliefType.EXCLUSIVE_OCCUPANCY: "Exclusive occupancy of shared residence",
    ReliefType.TEMPORARY_CUSTODY: "Temporary custody of children",
    ReliefType.NO_FIREARMS: "Surrender / no firearms",
    ReliefType.OTHER: "Other conditions",
}


class Jurisdiction(WireModel):
    """Locked to NY Family Court; only the county varies."""

    system: Literal["state"] = "state"
    state: Literal["NY"] = "NY"
    court_level: Literal["family"] = "family"
    county: str = ""


class Incident(WireModel):
    id: str = ""
    date: str = ""
    time: str = ""
    location: str = ""
    what_happened: str = ""
    injuries: str = ""
    threats: str = ""
    witnesses: str = ""
    evidence: str = ""


class SafetyConcerns(WireModel):
    # Tri-state: None means "unknown / not asked yet"
    safe_now: Optional[bool] = None
    threats_of_escalation: str = ""
    firearms_present: Optional[bool] = None
    firearms_details: str = ""
    strangulation: Optional[bool] = None
    suicide_threats: Optional[bool] = None
    pet_harm: Optional[bool] = None
    technology_abuse: str = ""


class ChildrenInfo(WireModel):
    children_involved: Optional[bool] = None
    number_of_children: int = 0
    children_witnessed_abuse: Optional[bool] = None
    children_directly_harmed: Optional[bool] = None
    children_details: str = ""


class ExistingCases(WireModel):
    existing_order_of_protection: Optional[bool] = None
    existing_op_details: str = Field(default="", alias="existingOPDetails")
    pending_family_case: Optional[bool] = None
    pending_family_case_details: str = ""
    pending_criminal_case: Optional[bool] = None
    pending_criminal_case_details: str = ""


class EvidenceInventory(WireModel):
    texts: bool = False
    call_records: bool = False
    emails: bool = False
    photos: bool = False
    videos: bool = False
    medical_records: bool = False
    police_reports: bool = False
    witnesses: bool = False
    voicemails: bool = False
    social_media: bool = False
    other: str = ""


class OPFacts(WireModel):
    """
    Everything known about one Order of Protection case.

    Every leaf has a default; absence is represented by the default value,
    never by a missing key. The four grouped concerns (safety, children,
    existing cases, evidence) are exactly one level deep.
    """

    petitioner_name: str = ""
    respondent_name: str = ""
    relationship: Union[RelationshipCategory, Literal[""]] = ""
    living_situation: Union[LivingSituation, Literal[""]] = ""
    cohabitation_details: str = ""
    most_recent_incident_date: str = ""
    most_recent_incident_time: str = ""
    incidents: List[Incident] = []
    pattern_description: str = ""
    safety: SafetyConcerns = SafetyConcerns()
    children: ChildrenInfo = ChildrenInfo()
    existing_cases: ExistingCases = ExistingCases()
    evidence: EvidenceInventory = EvidenceInventory()
    requested_relief: List[ReliefType] = []
    other_relief_details: str = ""
    desired_outcome: str = ""
    additional_notes: str = ""


def default_op_facts() -> OPFacts:
    """A fresh, fully-defaulted fact set."""
    return OPFacts()
