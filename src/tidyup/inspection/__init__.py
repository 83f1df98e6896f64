"""Discovery and content inspection."""

from .analysis import analyze_directory
from .discovery import DirectoryScanner
from .errors import InspectionError
from .inspector import ContentInspector, age_class_for, size_class_for
from .models import ContentFacts, DirectoryAnalysis, PendingFile
from .sniffing import ContentSniffer

__all__ = [
    "ContentFacts",
    "ContentInspector",
    "ContentSniffer",
    "DirectoryAnalysis",
    "DirectoryScanner",
    "InspectionError",
    "PendingFile",
    "age_class_for",
    "analyze_directory",
    "size_class_for",
]
