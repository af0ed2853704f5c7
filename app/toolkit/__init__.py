"""
Toolkit - Domain-Specific Utilities.

Domain-aware helpers shared by several apps:
- Validators: Kenyan phone number validation and normalization, PIN format

Usage:
    from toolkit.validators import normalize_phone_number, validate_phone_number

Note:
    - This app has no models.
    - For generic infrastructure (base models, exceptions, services), see core/
"""
