from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class CalorieEstimate(BaseModel):
    """Calorie range and macro grams for one plate."""

    model_config = ConfigDict(frozen=True)

    kcal_low: float
    kcal_high: float
    protein_g: float
    carbs_g: float
    fat_g: float
    notes: str = ""
