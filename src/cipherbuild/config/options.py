"""Compiler option sets.

Options are merged base-then-override per target. Nothing is deduplicated and
order is preserved, since compilers honour the last occurrence of a define.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from ..catalog import TARGETS
from ..errors import InvalidConfigurationError
from . import defaults


@dataclass
class CompilerOptionSet:
    """Ordered base options plus per-target overrides.

    Attributes:
        base: Options applied to every target, in order
        overrides: Extra options appended for specific target ids
        forced: Options the build tool sets itself; users may never supply them
        required: Options that must always be present in the base list
    """

    base: List[str] = field(default_factory=lambda: list(defaults.DEFAULT_COMPILER_OPTIONS))
    overrides: Dict[str, List[str]] = field(default_factory=dict)
    forced: Sequence[str] = field(default_factory=lambda: list(defaults.FORCED_OPTIONS))
    required: Sequence[str] = field(default_factory=lambda: list(defaults.REQUIRED_OPTIONS))

    def merged(self, target_id: str) -> List[str]:
        """Options for one target: base followed by its overrides."""
        return list(self.base) + list(self.overrides.get(target_id, []))

    def validate(self) -> None:
        """Check forced and required options and the override keys.

        Raises:
            InvalidConfigurationError: On the first violation found
        """
        for option in self.forced:
            if option in self.base:
                raise InvalidConfigurationError(
                    f"SqlCipher requires a specific setting for {option}, "
                    + "so do not attempt to specify it."
                )
            for target_id, extra in self.overrides.items():
                if option in extra:
                    raise InvalidConfigurationError(
                        f"SqlCipher requires a specific setting for {option}, "
                        + f"so do not specify it for {target_id}."
                    )

        for option in self.required:
            if option not in self.base:
                raise InvalidConfigurationError(
                    f"SqlCipher builds cannot work without option: {option}. "
                    + "See the required options list."
                )

        for target_id in self.overrides:
            if target_id not in TARGETS:
                raise InvalidConfigurationError(
                    f"Compiler options specified for unknown build target: {target_id}"
                )


def options_string(options: Sequence[str]) -> str:
    """Join options into one command-line fragment."""
    return " ".join(options)
