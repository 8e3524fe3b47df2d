from typing import List, Dict, Any, Optional
from pydantic import ValidationError

from src.models.request_models import TripRequest, normalize_interests

REQUIRED_FIELDS = ("country", "numberOfDays", "travelStyle", "interests", "budget", "groupType", "userId")

MISSING_FIELDS_MESSAGE = "Missing required fields"

class TripRequestValidator:
    """Validator for trip creation requests"""

    @staticmethod
    def _is_present(value: Any) -> bool:
        if value is None or isinstance(value, bool):
            return False
        if isinstance(value, str):
            return bool(value.strip())
        if isinstance(value, (list, tuple)):
            return len(value) > 0 and all(TripRequestValidator._is_present(v) for v in value)
        if isinstance(value, (int, float)):
            return value != 0
        return bool(value)

    @staticmethod
    def find_missing_fields(payload: Dict[str, Any]) -> List[str]:
        """Names of required fields that are absent or falsy (interests normalized first)"""
        missing = []
        for field in REQUIRED_FIELDS:
            value = payload.get(field)
            if field == "interests":
                value = normalize_interests(value)
            if not TripRequestValidator._is_present(value):
                missing.append(field)
        return missing

    @staticmethod
    def validate_number_of_days(value: Any, max_days: int) -> Optional[int]:
        """Coerce numberOfDays to an int within 1..max_days, or None"""
        if isinstance(value, bool):
            return None
        if isinstance(value, float) and not value.is_integer():
            return None
        try:
            days = int(value)
        except (TypeError, ValueError):
            return None
        return days if 1 <= days <= max_days else None

    @staticmethod
    def validate_create_request(payload: Any, max_days: int = 10) -> Dict[str, Any]:
        """Validate a raw create-trip body and build the TripRequest"""
        if not isinstance(payload, dict):
            return {'valid': False, 'message': MISSING_FIELDS_MESSAGE, 'errors': ["Request body must be a JSON object"], 'request': None}

        missing = TripRequestValidator.find_missing_fields(payload)
        if missing:
            return {
                'valid': False,
                'message': MISSING_FIELDS_MESSAGE,
                'errors': [f"{field} is required" for field in missing],
                'request': None
            }

        days = TripRequestValidator.validate_number_of_days(payload.get("numberOfDays"), max_days)
        if days is None:
            detail = f"numberOfDays must be a whole number between 1 and {max_days}"
            return {'valid': False, 'message': MISSING_FIELDS_MESSAGE, 'errors': [detail], 'request': None}

        try:
            request = TripRequest.model_validate({
                "country": str(payload["country"]).strip(),
                "numberOfDays": days,
                "travelStyle": str(payload["travelStyle"]).strip(),
                "interests": [i.strip() for i in normalize_interests(payload["interests"])],
                "budget": str(payload["budget"]).strip(),
                "groupType": str(payload["groupType"]).strip(),
                "userId": str(payload["userId"]).strip(),
            })
        except ValidationError as e:
            errors = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
            return {'valid': False, 'message': MISSING_FIELDS_MESSAGE, 'errors': errors, 'request': None}

        return {'valid': True, 'message': None, 'errors': [], 'request': request}
