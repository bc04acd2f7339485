from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    # Calculations referencing Calculations deeper than this raise CyclicReferenceError
    max_calculation_depth: int = Field(default=64, ge=1, alias="FORMULA_PRICING_MAX_CALCULATION_DEPTH")

    # Reuse a nested Calculation's value within one top-level calculate() call
    memoize_calculations: bool = Field(default=True, alias="FORMULA_PRICING_MEMOIZE_CALCULATIONS")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )


settings = EngineSettings()
