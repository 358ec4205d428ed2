"""Fixed catalog of Lambda packaging strategies."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Final, Iterable, Literal, Mapping

from lambda_pack.errors import UnknownStrategyError

StrategyId = Literal["raw", "pruned", "bundled"]
STRATEGY_IDS: Final[tuple[StrategyId, ...]] = ("raw", "pruned", "bundled")

KIB: Final[int] = 1024
MIB: Final[int] = 1024 * 1024


@dataclass(frozen=True, slots=True)
class CommandTemplate:
    """One build step as shell tokens; `{name}` tokens are bound per run."""

    tokens: tuple[str, ...]
    label: str
    typescript_only: bool = False


@dataclass(frozen=True, slots=True)
class Strategy:
    """A named packaging approach with its procedure and expected profile."""

    identifier: StrategyId
    description: str
    build_steps: tuple[CommandTemplate, ...]
    include_dev_dependencies: bool
    output_subdir: str
    single_file_output: bool
    expected_size_range_bytes: tuple[int, int]
    expected_cold_start_ms: tuple[int, int]

    @property
    def build_command(self) -> tuple[str, ...]:
        """Primary (final) step of the procedure."""

        return self.build_steps[-1].tokens


INSTALL_ALL = CommandTemplate(tokens=("{npm}", "{install}", "--no-audit", "--no-fund"), label="install")
INSTALL_PRODUCTION = CommandTemplate(
    tokens=("{npm}", "{install}", "--omit=dev", "--no-audit", "--no-fund"),
    label="install-production",
)
COMPILE = CommandTemplate(
    tokens=("{tsc}", "{tsc_input}", "--outDir", "dist"),
    label="compile",
    typescript_only=True,
)
PRUNE_DEV = CommandTemplate(tokens=("{npm}", "prune", "--omit=dev", "--no-audit", "--no-fund"), label="prune")
BUNDLE = CommandTemplate(
    tokens=(
        "{esbuild}",
        "{entry}",
        "--bundle",
        "--platform=node",
        "--target={node_target}",
        "--outfile={out_dir}/index.js",
        "{bundle_flags}",
    ),
    label="bundle",
)

DEFAULT_STRATEGIES: Final[tuple[Strategy, ...]] = (
    Strategy(
        identifier="raw",
        description="Install every dependency, compile, and ship the whole project tree.",
        build_steps=(INSTALL_ALL, COMPILE),
        include_dev_dependencies=True,
        output_subdir=".",
        single_file_output=False,
        expected_size_range_bytes=(20 * MIB, 250 * MIB),
        expected_cold_start_ms=(900, 2500),
    ),
    Strategy(
        identifier="pruned",
        description="Install, compile, then strip dev dependencies with npm prune.",
        build_steps=(INSTALL_ALL, COMPILE, PRUNE_DEV),
        include_dev_dependencies=False,
        output_subdir=".",
        single_file_output=False,
        expected_size_range_bytes=(2 * MIB, 60 * MIB),
        expected_cold_start_ms=(400, 1200),
    ),
    Strategy(
        identifier="bundled",
        description="Install production dependencies and tree-shake from the entry point into one file.",
        build_steps=(INSTALL_PRODUCTION, BUNDLE),
        include_dev_dependencies=False,
        output_subdir="bundle",
        single_file_output=True,
        expected_size_range_bytes=(4 * KIB, 5 * MIB),
        expected_cold_start_ms=(120, 450),
    ),
)


class StrategyCatalog:
    """Immutable, ordered lookup table of strategies."""

    __slots__ = ("_by_id", "_ordered")

    def __init__(self, strategies: Iterable[Strategy]) -> None:
        ordered = tuple(strategies)
        by_id: dict[str, Strategy] = {}
        for strategy in ordered:
            if strategy.identifier in by_id:
                raise ValueError(f"Duplicate strategy identifier: {strategy.identifier}")
            by_id[strategy.identifier] = strategy
        self._ordered = ordered
        self._by_id: Mapping[str, Strategy] = MappingProxyType(by_id)

    def list(self) -> tuple[Strategy, ...]:
        return self._ordered

    def identifiers(self) -> tuple[str, ...]:
        return tuple(strategy.identifier for strategy in self._ordered)

    def get(self, identifier: str) -> Strategy:
        try:
            return self._by_id[identifier]
        except KeyError:
            raise UnknownStrategyError(identifier, self.identifiers()) from None

    def resolve(self, identifiers: Iterable[str]) -> tuple[Strategy, ...]:
        """Validate a whole selection up front, keeping caller order and dropping repeats."""

        selected: list[Strategy] = []
        seen: set[str] = set()
        for identifier in identifiers:
            strategy = self.get(identifier)
            if strategy.identifier in seen:
                continue
            seen.add(strategy.identifier)
            selected.append(strategy)
        return tuple(selected)

    def __contains__(self, identifier: object) -> bool:
        return isinstance(identifier, str) and identifier.strip().lower() in self._by_id

    def __iter__(self):
        return iter(self._ordered)

    def __len__(self) -> int:
        return len(self._ordered)


def build_default_catalog() -> StrategyCatalog:
    """Construct the standard raw/pruned/bundled catalog."""

    return StrategyCatalog(DEFAULT_STRATEGIES)
