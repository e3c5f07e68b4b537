"""Template classification: one flag table keyed by ``TemplateOption``.

Every layout decision of a render reads from the ``TemplatePredicates``
computed once for the record, so adding a template is a one-table edit.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

from labcert.models import ReportRecord, TemplateOption

log = logging.getLogger(__name__)

_NOT_PROVIDED_KEY = "NOTPROVIDED"

HCP_LABEL_PREFIXES: tuple[str, ...] = ("R6", "PD", "CN", "CF", "CG", "G")

DEFAULT_TITLE = "Results report / Certificate"


@dataclass(frozen=True)
class TemplateFlags:
    """Layout and content switches for one template option."""

    title: str = DEFAULT_TITLE
    is_private_user: bool = True
    show_test_content: bool = True
    is_antigen: bool = False
    is_mobile_lab: bool = False
    is_international_arrival: bool = False
    is_corona_focus: bool = False
    is_gb_olympics: bool = False
    is_gb_olympics_remote: bool = False
    is_antigen_day_two: bool = False
    show_swab_date: bool = False
    show_swab_date_and_time: bool = False
    date_format_has_hours: bool = False

    @property
    def is_antigen_family(self) -> bool:
        return self.is_antigen or self.is_antigen_day_two

    @property
    def is_single_target(self) -> bool:
        return self.is_mobile_lab or self.is_gb_olympics_remote


# ── Classification table ─────────────────────────────────────────────

_T = TemplateOption

_NON_PRIVATE = frozenset({_T.NATIONAL_HEALTH, _T.PRIVATE_CUSTOMERS, _T.TITAN})
_NO_TEST_CONTENT = frozenset({_T.PRIVATE_CUSTOMERS, _T.TITAN})
_SWAB_DATE = frozenset(
    {
        _T.PRIVATE_UPDATED,
        _T.EGYPT_REPORT,
        _T.INTERNATIONAL_ARRIVALS,
        _T.CORONA_FOCUS,
        _T.MOBILE_LAB,
        _T.TEST_TO_RELEASE,
        _T.RANDOX_PORTUGAL,
        _T.GB_OLYMPICS,
        _T.GB_OLYMPICS_REMOTE,
        _T.ANTIGEN,
        _T.ANTIGEN_DAY_TWO,
    }
)
_SWAB_DATE_AND_TIME = _SWAB_DATE - {_T.PRIVATE_UPDATED}
_DATE_WITH_HOURS = _SWAB_DATE_AND_TIME - {_T.TEST_TO_RELEASE}

_TITLES: dict[TemplateOption, str] = {
    _T.INTERNATIONAL_ARRIVALS: "Day 2 / Day 8 Test Result Certificate",
    _T.CORONA_FOCUS: "Day 2 / Day 8 Test Result Certificate",
    _T.TEST_TO_RELEASE: "Test to Release Certificate",
    _T.ANTIGEN_DAY_TWO: "Lateral Flow Day 2 Test Result Certificate",
}


def _classify(option: TemplateOption) -> TemplateFlags:
    return TemplateFlags(
        title=_TITLES.get(option, DEFAULT_TITLE),
        is_private_user=option not in _NON_PRIVATE,
        show_test_content=option not in _NO_TEST_CONTENT,
        is_antigen=option is _T.ANTIGEN,
        is_mobile_lab=option is _T.MOBILE_LAB,
        is_international_arrival=option is _T.INTERNATIONAL_ARRIVALS,
        is_corona_focus=option is _T.CORONA_FOCUS,
        is_gb_olympics=option is _T.GB_OLYMPICS,
        is_gb_olympics_remote=option is _T.GB_OLYMPICS_REMOTE,
        is_antigen_day_two=option is _T.ANTIGEN_DAY_TWO,
        show_swab_date=option in _SWAB_DATE,
        show_swab_date_and_time=option in _SWAB_DATE_AND_TIME,
        date_format_has_hours=option in _DATE_WITH_HOURS,
    )


TEMPLATE_FLAGS: Mapping[TemplateOption, TemplateFlags] = MappingProxyType(
    {option: _classify(option) for option in TemplateOption}
)


# ── Result-table family ──────────────────────────────────────────────


class ResultTableVariant(str, Enum):
    ANTIGEN = "antigen"
    SINGLE_TARGET = "single_target"
    CORONA_FOCUS = "corona_focus"
    MULTI_RESULT = "multi_result"


def result_table_variant(flags: TemplateFlags) -> ResultTableVariant:
    """Pick the result-table family, antigen first and multi-result last.

    The antigen, single-target and corona-focus families are mutually
    exclusive. Flags claiming more than one of them fall back to the
    multi-result table.
    """
    claimed = [
        variant
        for variant, claimed_by_flags in (
            (ResultTableVariant.ANTIGEN, flags.is_antigen_family),
            (ResultTableVariant.SINGLE_TARGET, flags.is_single_target),
            (ResultTableVariant.CORONA_FOCUS, flags.is_corona_focus),
        )
        if claimed_by_flags
    ]
    if len(claimed) > 1:
        log.warning(
            "Conflicting result-table flags %s; using the multi-result table",
            [variant.value for variant in claimed],
        )
        return ResultTableVariant.MULTI_RESULT
    if claimed:
        return claimed[0]
    return ResultTableVariant.MULTI_RESULT


@dataclass(frozen=True)
class TemplatePredicates:
    """Flags and derived choices for one render."""

    option: TemplateOption
    flags: TemplateFlags
    table_variant: ResultTableVariant

    @classmethod
    def for_option(cls, option: TemplateOption, flags: Optional[TemplateFlags] = None) -> TemplatePredicates:
        flags = flags or TEMPLATE_FLAGS[option]
        return cls(option=option, flags=flags, table_variant=result_table_variant(flags))

    @classmethod
    def for_record(cls, record: ReportRecord) -> TemplatePredicates:
        return cls.for_option(record.template_option)


# ── Content predicates ───────────────────────────────────────────────


def _normalise(value: str) -> str:
    return "".join(value.upper().split())


def _is_provided(value: Optional[str]) -> bool:
    if value is None or not value.strip():
        return False
    return _normalise(value) != _NOT_PROVIDED_KEY


def show_passport_number(passport_number: Optional[str]) -> bool:
    return _is_provided(passport_number)


def show_nationality(nationality_name: Optional[str]) -> bool:
    return _is_provided(nationality_name)


def show_hcp_statement(label_id: str, override: bool = True) -> bool:
    """Whether the health-care-practitioner collection note applies to *label_id*."""
    label = label_id.strip().upper()
    return any(label.startswith(prefix) for prefix in HCP_LABEL_PREFIXES) and override
