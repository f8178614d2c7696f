from typing import List, Optional, Protocol
from dataclasses import dataclass, field


@dataclass
class ImageAnalysis:
    description: str
    tags: List[str] = field(default_factory=list)
    is_defective: bool = False
    defect_type: Optional[str] = None


class ImageAnalyzer(Protocol):
    """AI collaborator. Implementations raise AnalysisUnavailableError on failure."""

    def analyze(self, image_bytes: bytes, mime_type: str) -> ImageAnalysis:
        ...

    def categorize(self, image_bytes: bytes, mime_type: str, folder_names: List[str]) -> str:
        ...
