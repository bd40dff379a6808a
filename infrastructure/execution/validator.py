"""Pattern-based risk scanning for user-supplied bot code."""
import re
from typing import List, Optional, Pattern, Tuple

from domain.entities import RiskLevel, ValidationVerdict
from domain.services import CodeValidator
from infrastructure.config import SecurityConfig
from infrastructure.logging import get_logger

logger = get_logger(__name__)

# Shape of a gateway bot token: three dot-separated alphanumeric segments,
# not embedded in a longer run of token characters
TOKEN_PATTERN = re.compile(
    r"(?<![A-Za-z0-9])[A-Za-z0-9]{24}\.[A-Za-z0-9]{6}\.[A-Za-z0-9_-]{27}(?![A-Za-z0-9_-])"
)
SANITIZED_PLACEHOLDER = "YOUR_BOT_TOKEN"

_Rule = Tuple[str, Pattern[str]]


def _rules(*pairs: Tuple[str, str]) -> List[_Rule]:
    return [(label, re.compile(pattern, re.IGNORECASE | re.MULTILINE)) for label, pattern in pairs]


MALICIOUS_RULES = _rules(
    ("filesystem module import", r"^\s*(?:import|from)\s+(?:os|shutil|pathlib|glob|tempfile)\b"),
    ("process spawning", r"\bsubprocess\b|\bos\.(?:system|popen|spawn\w*|exec\w*|fork)\s*\("),
    ("process spawning", r"^\s*(?:import|from)\s+(?:multiprocessing|pty)\b"),
    ("dynamic code evaluation", r"\b(?:eval|exec)\s*\("),
    ("dynamic code evaluation", r"(?<![\w.])compile\s*\(|\b__import__\s*\("),
    ("process control", r"\bsys\.exit\b|\bos\._exit\b|\bos\.kill\b|(?<![\w.])(?:exit|quit)\s*\("),
    ("environment access", r"\bos\.environ\b|\bos\.getenv\b"),
    ("direct file access", r"(?<![\w.])open\s*\(|\.(?:read|write)_(?:text|bytes)\s*\("),
    ("introspection escape",
     r"\.__(?:class|bases|mro|subclasses|globals|code|builtins|import|loader|spec|dict|traceback)__\b"),
    ("module traversal", r"\.sys\b|\.modules\s*\[|\[\s*['\"](?:os|sys|subprocess|builtins)['\"]\s*\]"),
    ("interpolated f-string", r"\b(?:f|rf|fr)(['\"]).*?\{[^{}]*\}"),
    ("credential logging", r"(?:\bprint|\blog\w*\.\w+|\bconsole\.\w+)\s*\(.*\b\w*(?:token|password)"),
    ("predictable credential generation", r"\brandom\.\w+.*token"),
)

SUSPICIOUS_RULES = _rules(
    ("network access", r"\b(?:requests|urllib|aiohttp|httpx|socket)\b"),
    ("browser or desktop API", r"\b(?:webbrowser|tkinter|localStorage|sessionStorage)\b"),
    ("browser or desktop API", r"\b(?:document|window)\."),
    ("long timer delay", r"\b(?:sleep|call_later|loop)\s*\(.*\d{4,}"),
)

CLIENT_MARKERS = ("discord", "Client")
LOGIN_CALL = re.compile(r"\.(?:run|login)\s*\(")


class PatternCodeValidator(CodeValidator):
    """Scans bot code with ordered regex rule sets and structural checks.

    This is a best-effort filter, not a sandbox. Every matching rule adds one
    issue; the risk level only ever escalates.
    """

    def __init__(self, security_settings: Optional[SecurityConfig] = None):
        settings = security_settings or SecurityConfig()
        self.max_code_length = settings.max_code_length

    def validate(self, code: str) -> ValidationVerdict:
        """
        Scan bot code and classify its risk.

        Args:
            code: Bot source code to scan

        Returns:
            ValidationVerdict with risk level and issue list
        """
        verdict = ValidationVerdict()

        # 1. Malicious patterns
        for label, pattern in MALICIOUS_RULES:
            if pattern.search(code):
                verdict.flag(f"Dangerous code ({label}): {pattern.pattern}", RiskLevel.HIGH)

        # 2. Suspicious patterns
        for label, pattern in SUSPICIOUS_RULES:
            if pattern.search(code):
                verdict.flag(f"Suspicious code ({label}): {pattern.pattern}", RiskLevel.MEDIUM)

        # 3. Does this look like a bot at all
        if not any(marker in code for marker in CLIENT_MARKERS):
            verdict.flag("This does not look like a valid bot: no discord client found", RiskLevel.HIGH)

        # 4. Literal credentials
        if TOKEN_PATTERN.search(code):
            verdict.flag(
                f"Contains a literal bot token; use the {SANITIZED_PLACEHOLDER} placeholder instead",
                RiskLevel.MEDIUM,
            )

        # 5. Size
        if len(code) > self.max_code_length:
            verdict.flag(f"Code is too large ({len(code)} > {self.max_code_length} characters)", RiskLevel.MEDIUM)

        # 6. Login call
        if not LOGIN_CALL.search(code):
            verdict.flag("Missing login call: client.run(...) or client.login(...)", RiskLevel.HIGH)

        logger.debug(f"Validated {len(code)} characters: risk={verdict.risk_level.value}, "
                     f"issues={len(verdict.issues)}")
        return verdict

    def sanitize(self, code: str) -> str:
        """Replace literal bot tokens with the placeholder until none are left.

        A placeholder can complete a token shape together with the text around
        it, so a single pass is not enough. Every pass shortens the code, so
        the loop ends.
        """
        previous = None
        while code != previous:
            previous = code
            code = TOKEN_PATTERN.sub(SANITIZED_PLACEHOLDER, code)
        return code
