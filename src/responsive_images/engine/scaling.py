"""Derive the target width and encoding of a variant.

The resolver combines three inputs: the ``<density>,<width>`` sizing cookie
written by the client, optional query parameters (explicit width and output
format) and the static configuration. The steps run in a fixed order:

1. cookie signal, with the optional direct-scaling fallback;
2. baseline width ``round(density * width)``;
3. direct scaling override from the width query parameter;
4. format conversion (query parameter wins over the global target);
5. conversion-only short-circuit for images already small enough;
6. viewport or breakpoint strategy.

Rounding follows "round half up" so ``1.5 * 333`` yields ``500``.
"""

from __future__ import annotations

import math
import re
from dataclasses import replace
from typing import Mapping

import structlog

from ..config import ResponsiveImagesSettings, ScaleBy
from ..domain.models import DeviceSignal, RequestContext, ScaleStrategy, ScalingDecision
from ..exceptions import RejectedByPolicyError, SignalMissingError


logger = structlog.get_logger(__name__)

WEBP = "webp"
WEBP_MIME = "image/webp"

_LEADING_INT = re.compile(r"\s*([+-]?)(\d+)")

# Longer digit runs are treated like a missing width.
MAX_QUERY_WIDTH_DIGITS = 9
MAX_DIRECT_WIDTH = 10**MAX_QUERY_WIDTH_DIGITS - 1


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def parse_device_cookie(cookie_header: str | None, cookie_name: str) -> DeviceSignal | None:
    """Return the first ``<cookie_name>=<density>,<width>`` pair of the header.

    Missing headers, missing cookies and non-numeric values all yield ``None``.
    """

    if not cookie_header:
        return None
    pattern = re.compile(rf"(?:^|;|\s){re.escape(cookie_name)}=([^,;]+),([^;]+)")
    match = pattern.search(cookie_header)
    if match is None:
        return None
    try:
        density = float(match.group(1).strip())
        width = float(match.group(2).strip())
    except ValueError:
        return None
    if not (math.isfinite(density) and math.isfinite(width)):
        return None
    return DeviceSignal(density=density, width=width)


def parse_query_width(raw: str | None) -> int | None:
    """Parse leading integer digits of ``raw`` (``"300px"`` gives 300).

    Values with more than ``MAX_QUERY_WIDTH_DIGITS`` significant digits
    yield ``None``.
    """

    if raw is None:
        return None
    match = _LEADING_INT.match(raw)
    if match is None:
        return None
    sign, digits = match.groups()
    digits = digits.lstrip("0") or "0"
    if len(digits) > MAX_QUERY_WIDTH_DIGITS:
        return None
    value = int(digits)
    return -value if sign == "-" else value


def read_request_signals(
    context: RequestContext,
    settings: ResponsiveImagesSettings,
    *,
    query_params: Mapping[str, str],
    cookie_header: str | None,
    accept_header: str | None,
) -> RequestContext:
    """Return ``context`` enriched with the sizing and format signals."""

    query_format = query_params.get(settings.convertible_param)
    return replace(
        context,
        query_width=parse_query_width(query_params.get(settings.direct_scaling_param)),
        query_format=query_format.strip().lower() if query_format else None,
        signal=parse_device_cookie(cookie_header, settings.cookie_name),
        accepts_webp=WEBP_MIME in (accept_header or ""),
    )


class ScalingResolver:
    """Turns a request context into a :class:`ScalingDecision`."""

    def __init__(self, settings: ResponsiveImagesSettings) -> None:
        self.settings = settings

    def resolve(self, context: RequestContext, intrinsic_width: int) -> ScalingDecision:
        """Select width, strategy and extension for ``context``.

        Raises:
            SignalMissingError: If neither cookie nor fallback provide a size.
            RejectedByPolicyError: If configuration forbids the variant or
                there is nothing to do.
        """

        settings = self.settings
        log = logger.bind(path=context.url_path)
        requested_width = context.query_width or 0

        signal = context.signal
        if signal is None:
            if (
                settings.direct_scaling
                and requested_width > 0
                and settings.ignore_cookie_error_method == 1
            ):
                log.warning("images.scaling.cookie_fallback", cookie=settings.cookie_name)
                signal = DeviceSignal(density=1.0, width=1.0)
            else:
                raise SignalMissingError(
                    f"cookie '{settings.cookie_name}' missing and no fallback applies"
                )

        width = self._checked_round(signal.density * signal.width)
        log.debug("images.scaling.cookie", density=signal.density, width=signal.width)

        direct = False
        if requested_width > 0:
            if not settings.direct_scaling:
                log.warning("images.scaling.direct_disabled", requested=requested_width)
            elif settings.direct_scale_sizes and requested_width not in settings.direct_scale_sizes:
                raise RejectedByPolicyError(
                    f"width {requested_width} is not an allowed direct scale size"
                )
            elif requested_width > MAX_DIRECT_WIDTH:
                raise RejectedByPolicyError(
                    f"width {requested_width} exceeds the maximum direct width {MAX_DIRECT_WIDTH}"
                )
            else:
                width = self._checked_round(requested_width * signal.density)
                direct = True

        if width < 1:
            raise RejectedByPolicyError(f"calculated width {width} is not a legal width")

        extension = self._target_extension(context)
        converting = extension != context.extension

        if width >= intrinsic_width:
            if not converting:
                raise RejectedByPolicyError(
                    f"origin width {intrinsic_width} does not exceed target width {width}"
                )
            log.info("images.scaling.conversion_only", width=intrinsic_width, extension=extension)
            return ScalingDecision(
                width=intrinsic_width,
                strategy=ScaleStrategy.DIRECT,
                extension=extension,
                conversion_only=True,
            )

        if direct:
            strategy = ScaleStrategy.DIRECT
        elif settings.scale_by is ScaleBy.VIEWPORT:
            strategy = ScaleStrategy.VIEWPORT
        else:
            strategy = ScaleStrategy.BREAKPOINT
            width = self.snap_to_breakpoint(width)

        log.debug("images.scaling.resolved", width=width, strategy=strategy.value)
        return ScalingDecision(width=width, strategy=strategy, extension=extension)

    def snap_to_breakpoint(self, width: int) -> int:
        """Return the smallest breakpoint not less than ``width``."""

        ladder = self.settings.breakpoints
        if not ladder:
            raise RejectedByPolicyError("no breakpoints configured")
        if width > ladder[-1]:
            raise RejectedByPolicyError(
                f"width {width} exceeds the highest breakpoint {ladder[-1]}"
            )
        for bucket in ladder:
            if bucket >= width:
                return bucket
        raise RejectedByPolicyError(f"no breakpoint matches width {width}")

    def _target_extension(self, context: RequestContext) -> str:
        settings = self.settings
        extension = context.extension

        target = settings.file_type_conversion
        if target and target != context.file_type:
            if target == WEBP and not context.accepts_webp:
                logger.debug("images.scaling.webp_not_accepted", path=context.url_path)
            else:
                extension = f".{target}"

        requested = context.query_format
        if (
            requested
            and requested != context.file_type
            and requested in settings.convertible_file_types
        ):
            extension = f".{requested}"
        return extension

    @staticmethod
    def _checked_round(value: float) -> int:
        if not math.isfinite(value):
            raise RejectedByPolicyError("calculated width is not a finite number")
        return round_half_up(value)


__all__ = [
    "MAX_DIRECT_WIDTH",
    "MAX_QUERY_WIDTH_DIGITS",
    "ScalingResolver",
    "parse_device_cookie",
    "parse_query_width",
    "read_request_signals",
    "round_half_up",
]
