from .cv_record import CVRecord

__all__ = [
    "CVRecord",
]
