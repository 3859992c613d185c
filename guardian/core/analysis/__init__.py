"""
Misinformation analysis logic.

Contains the analysis service, the model-facing analyzer, domain models,
frame helpers and the request-scoped scratch workspace.
"""

from .analyzer import MisinformationAnalyzer, parse_analysis_reply, strip_code_fences
from .models import (
    AnalysisRecord,
    AnalysisResult,
    AnalysisType,
    InlineMedia,
    Upload,
    UserAccount,
    Verdict,
)
from .service import AnalysisOutcome, AnalysisService
from .workspace import ScratchWorkspace

__all__ = [
    "AnalysisOutcome",
    "AnalysisRecord",
    "AnalysisResult",
    "AnalysisService",
    "AnalysisType",
    "InlineMedia",
    "MisinformationAnalyzer",
    "ScratchWorkspace",
    "Upload",
    "UserAccount",
    "Verdict",
    "parse_analysis_reply",
    "strip_code_fences",
]
