from dataclasses import dataclass, field
from datetime import date

from dataclasses_json import dataclass_json


@dataclass_json
@dataclass
class TripPreferences:
    from_city: str
    trip_duration: int
    budget_amount: float
    budget_style: str
    adults: int
    kids: int = 0
    vibes: list[str] = field(default_factory=list)
    additional_details: str = ""
    dates: tuple[date, date] | None = None

    @classmethod
    def from_request(cls, req) -> "TripPreferences":
        """Build from a SuggestionRequest; unparseable dates are treated as flexible."""
        dates = None
        if req.start_date and req.end_date:
            try:
                dates = (date.fromisoformat(req.start_date), date.fromisoformat(req.end_date))
            except ValueError:
                dates = None
        return cls(
            from_city=req.from_city,
            trip_duration=req.trip_duration,
            budget_amount=req.budget_amount,
            budget_style=req.budget_style,
            adults=req.adults,
            kids=req.kids,
            vibes=list(req.vibes),
            additional_details=req.additional_details,
            dates=dates,
        )

    def travelers(self) -> int:
        return self.adults + self.kids

    def vibes_text(self) -> str:
        return ", ".join(v.strip() for v in self.vibes if v.strip()) or "Not specified"

    def trip_days(self) -> int:
        """Days between the chosen dates, or the requested duration when dates are flexible."""
        if self.dates:
            start, end = self.dates
            if end > start:
                return (end - start).days
        return self.trip_duration

    def dates_text(self) -> str:
        if not self.dates:
            return "flexible"
        start, end = self.dates
        return f"{start.isoformat()} to {end.isoformat()}"

    def budget_per_person(self) -> float:
        return round(self.budget_amount / max(self.travelers(), 1), 2)

    def budget_per_day(self) -> float:
        return round(self.budget_amount / max(self.trip_days(), 1), 2)
