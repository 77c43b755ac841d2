import fnmatch

import structlog

logger = structlog.get_logger()


class PathFilter:
    """Include/exclude glob rules; rules prefixed with ``!`` exclude."""

    def __init__(self, rules: list[str] | None = None) -> None:
        self.rules: list[tuple[str, bool]] = []
        for rule in rules or []:
            trimmed = rule.strip() if rule else ""
            if not trimmed:
                continue
            if trimmed.startswith("!"):
                self.rules.append((trimmed[1:].strip(), True))
            else:
                self.rules.append((trimmed, False))

    def __repr__(self) -> str:
        return f"PathFilter({self.rules!r})"

    @staticmethod
    def _matches(path: str, pattern: str) -> bool:
        if fnmatch.fnmatchcase(path, pattern):
            return True
        # "**/" also matches zero directories
        while pattern.startswith("**/"):
            pattern = pattern[3:]
            if fnmatch.fnmatchcase(path, pattern):
                return True
        return False

    def check(self, path: str) -> bool:
        """
        Check whether a path passes the filter.

        A path passes when no inclusion rule exists or one of them matches,
        and no exclusion rule matches.
        """
        if not self.rules:
            return True

        included = False
        excluded = False
        inclusion_rule_exists = False

        for pattern, exclude in self.rules:
            if self._matches(path, pattern):
                if exclude:
                    excluded = True
                else:
                    included = True
            if not exclude:
                inclusion_rule_exists = True

        ok = (not inclusion_rule_exists or included) and not excluded
        logger.debug("Checked path", path=path, ok=ok)
        return ok
