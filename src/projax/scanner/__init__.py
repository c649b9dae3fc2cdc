"""Project scanning: framework detection, directory walk and port extraction."""

from projax.scanner._detector import (
    FRAMEWORKS,
    MANIFEST_NAME,
    TEST_DIR_NAMES,
    TestFramework,
    detect_project_framework,
    detect_test_framework,
    is_test_file,
    read_manifest,
)
from projax.scanner._ports import PortInfo, extract_ports
from projax.scanner._scanner import Scanner
from projax.scanner._walker import (
    DEFAULT_IGNORE_DIRS,
    DEFAULT_MAX_DEPTH,
    iter_project_files,
)

__all__ = [
    "DEFAULT_IGNORE_DIRS",
    "DEFAULT_MAX_DEPTH",
    "FRAMEWORKS",
    "MANIFEST_NAME",
    "TEST_DIR_NAMES",
    "PortInfo",
    "Scanner",
    "TestFramework",
    "detect_project_framework",
    "detect_test_framework",
    "extract_ports",
    "is_test_file",
    "iter_project_files",
    "read_manifest",
]
