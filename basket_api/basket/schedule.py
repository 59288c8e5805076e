"""
Recurring schedule computation.

A frequency is a tagged union on ``type``. Each variant carries only the fields
it needs, so a weekly frequency without a weekday cannot be built.
``next_run`` maps a frequency and an explicit ``now`` to the next due timestamp.
"""
from datetime import datetime, timedelta
from typing import Annotated, Any, Dict, Literal, Optional, Union

from dateutil.relativedelta import relativedelta
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from basket_api.common.custom_exceptions import ValidationError
from basket_api.schema.basket import FrequencyType

# day-of-month is capped so every month has it (no february 30)
MAX_DAY_OF_MONTH = 28
DEFAULT_INTERVAL_DAYS = 30


class _FrequencyBase(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore", frozen=True)


class WeeklyFrequency(_FrequencyBase):
    type: Literal["weekly"] = "weekly"
    day_of_week: int = Field(..., ge=0, le=6)   # 0 = sunday


class MonthlyFrequency(_FrequencyBase):
    type: Literal["monthly"] = "monthly"
    day_of_month: int = Field(..., ge=1, le=31)


class QuarterlyFrequency(_FrequencyBase):
    type: Literal["quarterly"] = "quarterly"
    day_of_month: Optional[int] = Field(None, ge=1, le=31)


class CustomFrequency(_FrequencyBase):
    type: Literal["custom"] = "custom"
    interval_days: Optional[int] = Field(None, ge=0)


class BuyOnceFrequency(_FrequencyBase):
    type: Literal["buy_once"] = "buy_once"


Frequency = Annotated[
    Union[WeeklyFrequency, MonthlyFrequency, QuarterlyFrequency, CustomFrequency, BuyOnceFrequency],
    Field(discriminator="type"),
]

_frequency_adapter: TypeAdapter = TypeAdapter(Frequency)
_FREQUENCY_TYPES = tuple(t.value for t in FrequencyType)


def parse_frequency(raw: Any) -> Frequency:
    """Build a Frequency from its wire form, raising ValidationError on anything malformed."""
    if isinstance(raw, _FrequencyBase):
        return raw
    if not raw:
        raise ValidationError("frequency is required")
    if not isinstance(raw, dict):
        raise ValidationError("frequency must be an object")

    freq_type = raw.get("type")
    if freq_type not in _FREQUENCY_TYPES:
        raise ValidationError(f"frequency.type must be one of {', '.join(_FREQUENCY_TYPES)}")

    try:
        return _frequency_adapter.validate_python(raw)
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'][1:]) or 'frequency'}: {err['msg']}" for err in e.errors()
        )
        raise ValidationError(f"invalid {freq_type} frequency: {problems}") from e


def frequency_to_dict(frequency: Frequency) -> Dict[str, Any]:
    return frequency.model_dump(by_alias=True, exclude_none=True)


def sunday_based_weekday(moment: datetime) -> int:
    # python counts from monday=0 , schedules count from sunday=0
    return (moment.weekday() + 1) % 7


def next_run(frequency: Frequency, now: datetime) -> datetime:
    if isinstance(frequency, WeeklyFrequency):
        offset = (frequency.day_of_week - sunday_based_weekday(now) + 7) % 7 or 7
        return now + timedelta(days=offset)

    if isinstance(frequency, MonthlyFrequency):
        return now + relativedelta(months=1, day=min(frequency.day_of_month, MAX_DAY_OF_MONTH))

    if isinstance(frequency, QuarterlyFrequency):
        day = frequency.day_of_month or now.day
        return now + relativedelta(months=3, day=min(day, MAX_DAY_OF_MONTH))

    if isinstance(frequency, CustomFrequency):
        return now + timedelta(days=frequency.interval_days or DEFAULT_INTERVAL_DAYS)

    # buy_once is due immediately
    return now
