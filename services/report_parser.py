"""Report-to-estimate parser.

Turns the free-form analysis report returned by the AI inspection step into
priced ServiceItem line items.

Reports are loosely formatted markdown:

    RUG BREAKDOWN AND SERVICES
    Rug #1: Persian (8x10)
    - Deep Cleaning & Wash: $560.00
    - Fringe Repair: $185.00
    Subtotal: $745.00
    TOTAL ESTIMATE: $745.00

Parsing runs in two passes:
- Primary: only lines between a section start marker and a section end
  marker are read; repeated services merge into one item with a higher
  quantity.
- Fallback: used only when the primary pass finds nothing. Every
  "Label: $amount" line in the report is read; repeated services keep
  their first occurrence.

A "Label: $amount" line needs the dollar amount right after the colon, so
"**Deep Cleaning:** $560.00" (colon inside the bold markers) is not read.

Priority is first tier wins with one exception: "repair" takes the tier of
the rug component it is applied to, so "Fringe Repair", "Binding Repair" and
"Edge Repair" are medium while "Hole Repair" and plain "Repair" stay high.

The parser never raises on bad input, it returns an empty list instead.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List, Optional, Sequence, Tuple
from uuid import uuid4

import structlog

from models.service_item import Priority, ServiceItem, ServicePrice

logger = structlog.get_logger(__name__)

IdFactory = Callable[[], str]

MIN_SERVICE_NAME_LENGTH = 3

SECTION_START_MARKERS = (
    "rug breakdown",
    "estimate of services",
    "services and costs",
    "itemized list",
)

SECTION_END_MARKERS = (
    "total estimate",
    "total investment",
    "next steps",
    "sincerely",
    "additional protection",
)

RUG_HEADER_PREFIXES = ("rug #", "rug:")

# Labels containing these never become fallback items
FALLBACK_EXCLUDED_TERMS = ("subtotal", "total", "rug #")

# "- Label: $1,234.56" -> ("Label", "1,234.56")
SERVICE_LINE_PATTERN = re.compile(r"^\s*[-*]?\s*(.+?):\s*\$(\d[\d,]*(?:\.\d{2})?)")

PRIORITY_TIERS: Tuple[Tuple[Priority, Tuple[str, ...]], ...] = (
    (Priority.HIGH, (
        "cleaning", "wash", "stain removal", "repair", "reweaving",
        "hole", "tear", "foundation", "dry rot", "soaking",
    )),
    (Priority.MEDIUM, (
        "binding", "overcast", "fringe", "edge", "selvedge",
        "blocking", "stretching", "shearing", "zenjireh",
    )),
    (Priority.LOW, (
        "protection", "moth proof", "padding", "fiber protect",
        "scotchgard", "storage",
    )),
)

DEFAULT_PRIORITY = Priority.MEDIUM

# Generic work verbs that take the tier of the rug component they are
# applied to: "Fringe Repair" is edge work, "Hole Repair" is structural.
COMPONENT_QUALIFIED_KEYWORDS = frozenset({"repair"})


# =============================================================================
# LINE CLASSIFICATION
# =============================================================================


class LineKind(str, Enum):
    """What a single report line represents."""

    SECTION_START = "section_start"
    SECTION_END = "section_end"
    RUG_HEADER = "rug_header"
    SUBTOTAL = "subtotal"
    SERVICE_CANDIDATE = "service_candidate"
    UNRECOGNIZED = "unrecognized"


@dataclass(frozen=True)
class ClassifiedLine:
    """A report line tagged with its kind.

    label and price are only set for SERVICE_CANDIDATE lines.
    """
    kind: LineKind
    label: str = ""
    price: float = 0.0


def _match_service_line(line: str) -> Optional[Tuple[str, float]]:
    """Match a "Label: $amount" line, returning (raw label, price)."""
    match = SERVICE_LINE_PATTERN.match(line)
    if not match:
        return None
    return match.group(1), float(match.group(2).replace(",", ""))


def _clean_label(label: str) -> str:
    """Strip leading bullet markers and markdown bold markers."""
    label = re.sub(r"^[\s\-*]+", "", label)
    return label.replace("**", "").strip()


def classify_line(line: str) -> ClassifiedLine:
    """Classify one line of report text.

    Section markers are checked before anything else, so a marker line is
    never read as a service even if it carries a dollar amount.
    """
    lower_line = line.lower()

    if any(marker in lower_line for marker in SECTION_START_MARKERS):
        return ClassifiedLine(LineKind.SECTION_START)
    if any(marker in lower_line for marker in SECTION_END_MARKERS):
        return ClassifiedLine(LineKind.SECTION_END)

    stripped = lower_line.strip()
    if not stripped:
        return ClassifiedLine(LineKind.UNRECOGNIZED)
    if stripped.startswith(RUG_HEADER_PREFIXES):
        return ClassifiedLine(LineKind.RUG_HEADER)
    if "subtotal" in stripped:
        return ClassifiedLine(LineKind.SUBTOTAL)

    matched = _match_service_line(line)
    if matched is None:
        return ClassifiedLine(LineKind.UNRECOGNIZED)
    label, price = matched
    return ClassifiedLine(LineKind.SERVICE_CANDIDATE, label=_clean_label(label), price=price)


# =============================================================================
# PRIORITY CLASSIFICATION
# =============================================================================


def _names_rug_component(lower_name: str) -> bool:
    medium_keywords = PRIORITY_TIERS[1][1]
    return any(keyword in lower_name for keyword in medium_keywords)


def classify_priority(service_name: str) -> Priority:
    """Classify a service name into a priority tier.

    Tiers are checked high, medium, low; the first keyword hit wins and
    names with no keyword hit default to medium.

    Args:
        service_name: Service label, any case.

    Returns:
        Priority tier.
    """
    lower_name = service_name.lower()
    for tier, keywords in PRIORITY_TIERS:
        for keyword in keywords:
            if keyword not in lower_name:
                continue
            if keyword in COMPONENT_QUALIFIED_KEYWORDS and _names_rug_component(lower_name):
                continue
            return tier
    return DEFAULT_PRIORITY


# =============================================================================
# PARSING PASSES
# =============================================================================


class _SectionState(str, Enum):
    OUTSIDE_SECTION = "outside_section"
    INSIDE_SECTION = "inside_section"


def _find_by_name(services: Sequence[ServiceItem], name: str) -> int:
    lower_name = name.lower()
    for index, service in enumerate(services):
        if service.name.lower() == lower_name:
            return index
    return -1


def _new_item(name: str, price: float, id_factory: IdFactory) -> ServiceItem:
    return ServiceItem(
        id=id_factory(),
        name=name,
        quantity=1,
        unit_price=price,
        priority=classify_priority(name),
    )


def _merge_or_append(
    services: List[ServiceItem],
    name: str,
    price: float,
    id_factory: IdFactory,
) -> None:
    """Add a primary-pass candidate, merging into an existing same-name item.

    A merge bumps the quantity and only fills in the price when the
    existing item is still at zero (first non-zero price wins).
    """
    index = _find_by_name(services, name)
    if index < 0:
        services.append(_new_item(name, price, id_factory))
        return

    existing = services[index]
    updates = {"quantity": existing.quantity + 1}
    if existing.unit_price == 0 and price > 0:
        updates["unit_price"] = price
    services[index] = existing.with_updates(**updates)


def _primary_pass(lines: Iterable[str], id_factory: IdFactory) -> List[ServiceItem]:
    """Read service lines inside recognized services sections."""
    services: List[ServiceItem] = []
    state = _SectionState.OUTSIDE_SECTION

    for line in lines:
        classified = classify_line(line)

        if classified.kind == LineKind.SECTION_START:
            state = _SectionState.INSIDE_SECTION
            continue
        if classified.kind == LineKind.SECTION_END:
            state = _SectionState.OUTSIDE_SECTION
            continue
        if state != _SectionState.INSIDE_SECTION:
            continue
        if classified.kind != LineKind.SERVICE_CANDIDATE:
            continue
        if len(classified.label) < MIN_SERVICE_NAME_LENGTH:
            continue

        _merge_or_append(services, classified.label, classified.price, id_factory)

    return services


def _fallback_pass(lines: Iterable[str], id_factory: IdFactory) -> List[ServiceItem]:
    """Read every "Label: $amount" line, ignoring section markers.

    Repeated names keep their first occurrence and are not merged.
    """
    services: List[ServiceItem] = []

    for line in lines:
        matched = _match_service_line(line)
        if matched is None:
            continue
        raw_label, price = matched

        name = _clean_label(raw_label)
        lower_name = name.lower()
        if any(term in lower_name for term in FALLBACK_EXCLUDED_TERMS):
            continue
        if len(name) < MIN_SERVICE_NAME_LENGTH:
            continue
        if _find_by_name(services, name) >= 0:
            continue

        services.append(_new_item(name, price, id_factory))

    return services


def _default_id() -> str:
    return str(uuid4())


def parse_report_for_services(
    report_text: str,
    id_factory: Optional[IdFactory] = None,
) -> List[ServiceItem]:
    """Extract priced service line items from AI report text.

    Args:
        report_text: Report text from the analysis step.
        id_factory: Callable returning a fresh item id. Defaults to uuid4.

    Returns:
        Service items in first-seen order; empty if none were found.
    """
    if not isinstance(report_text, str) or not report_text:
        return []

    id_factory = id_factory or _default_id
    lines = report_text.splitlines()

    services = _primary_pass(lines, id_factory)
    parse_pass = "primary"
    if not services:
        services = _fallback_pass(lines, id_factory)
        parse_pass = "fallback"

    logger.info(
        "report_parsed",
        parse_pass=parse_pass,
        line_count=len(lines),
        service_count=len(services),
    )
    return services


# =============================================================================
# CATALOG BACKFILL
# =============================================================================


def apply_price_catalog(
    services: Sequence[ServiceItem],
    catalog: Sequence[ServicePrice],
) -> List[ServiceItem]:
    """Fill zero-priced services from the business's service price catalog.

    A catalog entry matches when either name contains the other
    (case-insensitive); the first match in catalog order is used. Items
    that already have a price are returned unchanged.

    Args:
        services: Parsed service items.
        catalog: Configured service prices.

    Returns:
        New list of service items.
    """
    result: List[ServiceItem] = []
    for service in services:
        if service.unit_price != 0:
            result.append(service)
            continue

        lower_name = service.name.lower()
        matched = next(
            (
                entry for entry in catalog
                if entry.service_name
                and entry.service_name.lower() in lower_name
                or lower_name in entry.service_name.lower()
            ),
            None,
        )
        if matched is None:
            result.append(service)
            continue

        logger.debug(
            "catalog_price_applied",
            service_name=service.name,
            catalog_name=matched.service_name,
            unit_price=matched.unit_price,
        )
        result.append(service.with_updates(unit_price=matched.unit_price))
    return result
