"""
Failure classification for GnuPG invocations.

Matches captured stderr text against known GnuPG messages and produces a
``FailureReport`` with a category, severity and suggestions. Callers use the
category to turn well-known failures into domain answers (a bad signature is
a verification verdict, not an error).
"""

import re
import time
import logging
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field
from enum import Enum

from .errors import ProcessTimeoutError, SubprocessFailure

logger = logging.getLogger(__name__)


class ErrorCategory(Enum):
    """Categories of GnuPG failures."""
    BAD_SIGNATURE = "bad_signature"
    MISSING_PUBLIC_KEY = "missing_public_key"
    MISSING_SECRET_KEY = "missing_secret_key"
    BAD_PASSPHRASE = "bad_passphrase"
    DECRYPTION_FAILED = "decryption_failed"
    UNUSABLE_KEY = "unusable_key"
    FILE_SYSTEM_ERROR = "file_system_error"
    TIMEOUT_ERROR = "timeout_error"
    UNKNOWN_ERROR = "unknown_error"


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class ErrorPattern:
    """Error pattern for detection."""
    category: ErrorCategory
    severity: ErrorSeverity
    patterns: List[str]
    description: str
    suggestions: List[str] = field(default_factory=list)


@dataclass
class FailureReport:
    """Classification of a single failed invocation."""
    timestamp: float = field(default_factory=time.time)
    category: ErrorCategory = ErrorCategory.UNKNOWN_ERROR
    severity: ErrorSeverity = ErrorSeverity.MEDIUM
    description: str = ""

    executable: Optional[str] = None
    exit_code: Optional[int] = None
    stderr: str = ""

    matched_patterns: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)


class ErrorHandler:
    """
    Classifies GnuPG failures from their stderr text.

    Extra patterns can be supplied through ``config['extra_patterns']`` as a
    list of dicts with the ErrorPattern fields (category/severity as values).
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self.error_patterns: List[ErrorPattern] = []
        self._load_error_patterns()

    def analyze(self, failure: BaseException) -> FailureReport:
        """Build a FailureReport for an exception raised by an invocation."""
        if isinstance(failure, ProcessTimeoutError):
            return FailureReport(
                category=ErrorCategory.TIMEOUT_ERROR,
                severity=ErrorSeverity.MEDIUM,
                description=str(failure),
                executable=failure.process_name,
                suggestions=["Increase the timeout", "Check for a pinentry prompt waiting for input"],
            )

        report = FailureReport(description=str(failure), stderr=str(failure))
        if isinstance(failure, SubprocessFailure):
            report.executable = failure.executable
            report.exit_code = failure.exit_code
            report.stderr = failure.stderr
        self._classify_error(report)
        logger.debug(f"Classified failure as {report.category.value}: {report.description}")
        return report

    def is_bad_signature(self, failure: BaseException) -> bool:
        return self.analyze(failure).category is ErrorCategory.BAD_SIGNATURE

    def _classify_error(self, report: FailureReport) -> None:
        error_text = report.stderr.lower()
        for pattern in self.error_patterns:
            for pattern_text in pattern.patterns:
                if re.search(pattern_text.lower(), error_text):
                    report.category = pattern.category
                    report.severity = pattern.severity
                    report.description = pattern.description
                    report.suggestions.extend(pattern.suggestions)
                    report.matched_patterns.append(pattern_text)
                    return

    def _load_error_patterns(self) -> None:
        """Load built-in patterns, then any configured extras."""
        # Order matters: the first matching pattern wins.
        self.error_patterns.extend([
            ErrorPattern(
                category=ErrorCategory.BAD_SIGNATURE,
                severity=ErrorSeverity.HIGH,
                patterns=[r"BAD signature"],
                description="Signature does not match the signed data",
                suggestions=["The file was modified after signing or the signature belongs to another file"],
            ),
            ErrorPattern(
                category=ErrorCategory.BAD_PASSPHRASE,
                severity=ErrorSeverity.MEDIUM,
                patterns=[r"bad passphrase", r"no passphrase given", r"passphrase.*(invalid|wrong)"],
                description="Passphrase rejected",
                suggestions=["Check the passphrase", "Use --pinentry-mode loopback with gpg 2.1+"],
            ),
            ErrorPattern(
                category=ErrorCategory.MISSING_SECRET_KEY,
                severity=ErrorSeverity.HIGH,
                patterns=[r"no secret key", r"secret key not available"],
                description="Required secret key is not in the keyring",
                suggestions=["Import the private key", "Check --homedir"],
            ),
            ErrorPattern(
                category=ErrorCategory.MISSING_PUBLIC_KEY,
                severity=ErrorSeverity.HIGH,
                patterns=[r"no public key", r"public key not found", r"No such user ID"],
                description="Required public key is not in the keyring",
                suggestions=["Import the recipient's public key", "Check the recipient identifier"],
            ),
            ErrorPattern(
                category=ErrorCategory.UNUSABLE_KEY,
                severity=ErrorSeverity.HIGH,
                patterns=[r"unusable public key", r"key expired", r"key revoked", r"There is no assurance"],
                description="Key exists but cannot be used",
                suggestions=["Renew or replace the key", "Adjust the trust model"],
            ),
            ErrorPattern(
                category=ErrorCategory.DECRYPTION_FAILED,
                severity=ErrorSeverity.HIGH,
                patterns=[r"decryption failed", r"no valid OpenPGP data found"],
                description="Input could not be decrypted",
                suggestions=["Check that the input is OpenPGP encrypted data"],
            ),
            ErrorPattern(
                category=ErrorCategory.FILE_SYSTEM_ERROR,
                severity=ErrorSeverity.MEDIUM,
                patterns=[r"can't open", r"No such file or directory", r"Permission denied", r"File exists"],
                description="Input or output file could not be accessed",
                suggestions=["Check file paths and permissions", "Pass --yes to overwrite existing output"],
            ),
        ])

        for extra in self.config.get("extra_patterns", []) or []:
            self.error_patterns.append(ErrorPattern(
                category=ErrorCategory(extra["category"]),
                severity=ErrorSeverity(extra.get("severity", "medium")),
                patterns=list(extra["patterns"]),
                description=extra.get("description", ""),
                suggestions=list(extra.get("suggestions", [])),
            ))
