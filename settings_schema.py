from typing import Literal, Optional

from pydantic import BaseModel, Field, ValidationError


class SettingsSchema(BaseModel):
    age: Optional[float] = Field(default=None, gt=0, lt=120)
    body_weight: Optional[float] = Field(default=None, gt=0)
    sex: Literal["male", "female"] = "male"
    is_metric: bool = False
    preferred_unit: Literal["lb", "kg"] = "lb"
    e1rm_formula: Literal[
        "Brzycki", "Epley", "McGlothin", "Lombardi", "Mayhew", "OConner", "Wathan", "Wathen"
    ] = "Brzycki"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"

    @property
    def has_bio_data(self) -> bool:
        """True when age and body weight are known, so standards apply."""
        return bool(self.age) and bool(self.body_weight)


def validate_settings(data: dict) -> SettingsSchema:
    try:
        return SettingsSchema(**data)
    except ValidationError as e:
        raise ValueError(str(e))
