"""External-input model and witness allocation for the signature-folding step."""

from .base import AllocVar
from .external_inputs import SIG_S_BITS, ExtInp, ExtInpVar, VecExtInp, VecExtInpVar

__all__ = [
    "AllocVar",
    "ExtInp",
    "VecExtInp",
    "ExtInpVar",
    "VecExtInpVar",
    "SIG_S_BITS",
]
