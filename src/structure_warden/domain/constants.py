"""
Warden Constants: descriptor conventions, staging layout and report locations.
"""

import re

# ANSI Cyan (\033[36m)
_CYAN: str = "\033[36m"
_RESET: str = "\033[0m"
_WARDEN_ART: str = r"""
 _      __            __
| | /| / /__ _______ / /__ ___
| |/ |/ / _ `/ __/ _  / -_) _ \   Structure Compliance
|__/|__/\_,_/_/  \_,_/\__/_//_/   Scan . Fix . Rollback
"""
WARDEN_BANNER = _CYAN + _WARDEN_ART + _RESET

TOOL_SECTION: str = "structure-warden"

DESCRIPTOR_FILE: str = "pom.xml"
AGGREGATE_PACKAGING: str = "pom"
MAX_SCAN_DEPTH: int = 10

STAGING_DIR: str = ".remediation/staging"
BACKUP_EXTENSION: str = ".bak"
REMEDIATION_ROOT: str = ".remediation"
REPORT_DIR: str = ".remediation/reports"
COMPLIANCE_REPORT_PATH: str = "target/compliance-reports/compliance-report.json"

# Directories never treated as modules.
DEFAULT_EXCLUDED_DIRS: frozenset[str] = frozenset(
    {
        REMEDIATION_ROOT,
        "target",
        "node_modules",
        "build",
    }
)

LAYER_PATTERN = re.compile(r"^(.+)-(api|core|facade|spi|common|util|utils)$")

LAYER_SLOTS: tuple[str, ...] = ("api", "core", "facade", "spi", "common", "util")

LEAF_SUFFIXES: tuple[str, ...] = (
    "-api",
    "-core",
    "-facade",
    "-spi",
    "-common",
    "-commons",
    "-util",
    "-utils",
)

SOURCE_DIRS: tuple[str, ...] = ("src/main/java", "src/test/java")

MAX_VIOLATIONS_PER_RULE: int = 3
DEFAULT_FIXER_PRIORITY: int = 50
REPORT_VERSION: str = "1.0.0"
EXAMPLE_MESSAGE_LIMIT: int = 150
