from InquirerPy.separator import Separator

from .autocomplete_pin import AutocompletePinPrompt
from .choices import Choice, ChoiceList
from .exceptions import OutOfRangeSelection, PromptError, SourceError, ValidationError
from .state import PromptStatus

__all__ = [
    "AutocompletePinPrompt",
    "Choice",
    "ChoiceList",
    "OutOfRangeSelection",
    "PromptError",
    "PromptStatus",
    "Separator",
    "SourceError",
    "ValidationError",
]
