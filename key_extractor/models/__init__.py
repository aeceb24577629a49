"""Domain models for the key extractor.

This module provides a centralized location for all data models used by the
key-signature extraction pipeline. It includes:

- Core domain models (BoundingBox, Fragment, CompoundGlyph, Candidate, ...)
- The key area model with its slots (KeyRoi)
- Configuration parameters and their scale-derived pixel values

All models are built using Pydantic for data validation, ensuring type safety
and clear interfaces between pipeline components.
"""

# Re-export core models
from key_extractor.models.core_models import (
    BoundingBox,
    Candidate,
    CompoundGlyph,
    Evaluation,
    Fragment,
    KeyAlter,
    Peak,
    Shape,
    Slot,
)

# Re-export ROI model
from key_extractor.models.roi_models import KeyRoi

# Re-export setting models
from key_extractor.models.settings_models import (
    ExtractionConstants,
    ExtractionSettings,
    KeyRange,
    Parameters,
    StaffInfo,
)
