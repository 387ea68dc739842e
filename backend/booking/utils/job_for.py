"""
Typed form of a booking's "job for" tags.

Bookings arrive with a free list of tags (`male`, `certified_in_law`, ...).
They are stored as two columns, `gender` and `certified`, and rendered back
to display tags in push payloads.
"""
from dataclasses import dataclass
from enum import Enum


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


class Certification(str, Enum):
    # Values are the codes stored in jobs.certified.
    NORMAL = "normal"
    CERTIFIED = "yes"
    LAW = "law"
    HEALTH = "health"
    BOTH = "both"


_CERTIFICATION_TAGS = [
    ("normal", Certification.NORMAL),
    ("certified", Certification.CERTIFIED),
    ("certified_in_law", Certification.LAW),
    ("certified_in_health", Certification.HEALTH),
]

_GENDER_LABELS = {Gender.MALE: "Man", Gender.FEMALE: "Kvinna"}

_CERTIFICATION_LABELS = {
    Certification.NORMAL: ["normal"],
    Certification.CERTIFIED: ["certified"],
    Certification.LAW: ["certified_in_law"],
    Certification.HEALTH: ["certified_in_health"],
    Certification.BOTH: ["normal", "certified"],
}


@dataclass(frozen=True)
class JobFor:
    gender: Gender | None = None
    certification: Certification | None = None

    @classmethod
    def from_tags(cls, tags) -> "JobFor":
        tags = set(tags or [])
        gender = None
        if "male" in tags:
            gender = Gender.MALE
        elif "female" in tags:
            gender = Gender.FEMALE

        certification = None
        if "normal" in tags and "certified" in tags:
            certification = Certification.BOTH
        else:
            for tag, value in _CERTIFICATION_TAGS:
                if tag in tags:
                    certification = value
                    break
        return cls(gender=gender, certification=certification)

    @classmethod
    def from_columns(cls, gender: str | None, certified: str | None) -> "JobFor":
        return cls(
            gender=Gender(gender) if gender else None,
            certification=Certification(certified) if certified else None,
        )

    @property
    def gender_value(self) -> str | None:
        return self.gender.value if self.gender else None

    @property
    def certified_value(self) -> str | None:
        return self.certification.value if self.certification else None

    def to_tags(self) -> list[str]:
        tags = []
        if self.gender:
            tags.append(_GENDER_LABELS[self.gender])
        if self.certification:
            tags.extend(_CERTIFICATION_LABELS[self.certification])
        return tags
