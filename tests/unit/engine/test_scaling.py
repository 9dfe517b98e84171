from __future__ import annotations

from pathlib import Path

import pytest

from src.responsive_images.config import ResponsiveImagesSettings
from src.responsive_images.domain.models import DeviceSignal, RequestContext, ScaleStrategy
from src.responsive_images.engine.scaling import (
    MAX_DIRECT_WIDTH,
    ScalingResolver,
    parse_device_cookie,
    parse_query_width,
    read_request_signals,
    round_half_up,
)
from src.responsive_images.exceptions import RejectedByPolicyError, SignalMissingError

pytestmark = pytest.mark.unit

LADDER = [320, 480, 640, 800, 1024]


def _settings(**overrides) -> ResponsiveImagesSettings:
    return ResponsiveImagesSettings(breakpoints=LADDER, **overrides)


def _context(**overrides) -> RequestContext:
    values = {
        "url_path": "/images/photo.jpg",
        "origin_path": Path("/srv/public/images/photo.jpg"),
        "base_name": "photo",
        "extension": ".jpg",
        "signal": DeviceSignal(density=1.0, width=500.0),
    }
    values.update(overrides)
    return RequestContext(**values)


def test_density_and_width_snap_to_next_breakpoint() -> None:
    decision = ScalingResolver(_settings()).resolve(_context(), intrinsic_width=1200)

    assert decision.width == 640
    assert decision.strategy is ScaleStrategy.BREAKPOINT
    assert decision.extension == ".jpg"
    assert decision.conversion_only is False


def test_width_above_highest_breakpoint_is_rejected() -> None:
    context = _context(signal=DeviceSignal(density=2.0, width=800.0))

    with pytest.raises(RejectedByPolicyError, match="exceeds the highest breakpoint 1024"):
        ScalingResolver(_settings()).resolve(context, intrinsic_width=4000)


@pytest.mark.parametrize(
    ("target", "expected"),
    [(1, 320), (320, 320), (321, 480), (481, 640), (640, 640), (1023, 1024), (1024, 1024)],
)
def test_breakpoint_is_smallest_not_less_than_target(target: int, expected: int) -> None:
    assert ScalingResolver(_settings()).snap_to_breakpoint(target) == expected


def test_breakpoints_are_sorted_once_at_startup() -> None:
    settings = ResponsiveImagesSettings(breakpoints=[800, 320, 640, 320])

    assert settings.breakpoints == (320, 640, 800)
    assert ScalingResolver(settings).snap_to_breakpoint(500) == 640


def test_baseline_rounds_half_up() -> None:
    context = _context(signal=DeviceSignal(density=1.5, width=333.0))

    decision = ScalingResolver(_settings(scale_by="viewport")).resolve(context, intrinsic_width=1200)

    assert round_half_up(499.5) == 500
    assert decision.width == 500
    assert decision.strategy is ScaleStrategy.VIEWPORT


def test_viewport_uses_baseline_verbatim() -> None:
    context = _context(signal=DeviceSignal(density=2.0, width=375.0))

    decision = ScalingResolver(_settings(scale_by="viewport")).resolve(context, intrinsic_width=1200)

    assert decision.width == 750


def test_direct_scaling_skips_breakpoints() -> None:
    context = _context(query_width=300)

    decision = ScalingResolver(_settings(direct_scaling=True)).resolve(context, intrinsic_width=1200)

    assert decision.width == 300
    assert decision.strategy is ScaleStrategy.DIRECT


def test_direct_scaling_multiplies_density() -> None:
    context = _context(query_width=300, signal=DeviceSignal(density=2.0, width=400.0))

    decision = ScalingResolver(_settings(direct_scaling=True)).resolve(context, intrinsic_width=1200)

    assert decision.width == 600


def test_direct_scaling_rejects_size_outside_allow_list() -> None:
    settings = _settings(direct_scaling=True, direct_scale_sizes=[100, 200])

    with pytest.raises(RejectedByPolicyError, match="not an allowed direct scale size"):
        ScalingResolver(settings).resolve(_context(query_width=300), intrinsic_width=1200)


def test_direct_scaling_accepts_listed_size() -> None:
    settings = _settings(direct_scaling=True, direct_scale_sizes=[100, 200])

    decision = ScalingResolver(settings).resolve(_context(query_width=200), intrinsic_width=1200)

    assert decision.width == 200


@pytest.mark.parametrize("requested", [MAX_DIRECT_WIDTH + 1, 10**400])
def test_direct_width_beyond_maximum_is_rejected(requested: int) -> None:
    context = _context(query_width=requested)

    with pytest.raises(RejectedByPolicyError, match="maximum direct width"):
        ScalingResolver(_settings(direct_scaling=True)).resolve(context, intrinsic_width=1200)


def test_overflowing_cookie_product_is_rejected() -> None:
    context = _context(signal=DeviceSignal(density=1e200, width=1e200))

    with pytest.raises(RejectedByPolicyError, match="not a finite number"):
        ScalingResolver(_settings()).resolve(context, intrinsic_width=1200)


def test_width_query_is_ignored_when_direct_scaling_disabled() -> None:
    decision = ScalingResolver(_settings()).resolve(_context(query_width=300), intrinsic_width=1200)

    assert decision.width == 640
    assert decision.strategy is ScaleStrategy.BREAKPOINT


def test_missing_cookie_is_rejected() -> None:
    with pytest.raises(SignalMissingError):
        ScalingResolver(_settings()).resolve(_context(signal=None), intrinsic_width=1200)


def test_missing_cookie_falls_back_for_direct_requests() -> None:
    settings = _settings(direct_scaling=True, ignore_cookie_error_method=1)

    decision = ScalingResolver(settings).resolve(
        _context(signal=None, query_width=300), intrinsic_width=1200
    )

    assert decision.width == 300
    assert decision.strategy is ScaleStrategy.DIRECT


def test_fallback_requires_ignore_method() -> None:
    settings = _settings(direct_scaling=True, ignore_cookie_error_method=0)

    with pytest.raises(SignalMissingError):
        ScalingResolver(settings).resolve(_context(signal=None, query_width=300), intrinsic_width=1200)


def test_fallback_without_width_query_is_rejected() -> None:
    settings = _settings(direct_scaling=True, ignore_cookie_error_method=1)

    with pytest.raises(SignalMissingError):
        ScalingResolver(settings).resolve(_context(signal=None), intrinsic_width=1200)


def test_width_below_one_is_rejected() -> None:
    context = _context(signal=DeviceSignal(density=0.1, width=2.0))

    with pytest.raises(RejectedByPolicyError, match="not a legal width"):
        ScalingResolver(_settings()).resolve(context, intrinsic_width=1200)


def test_small_origin_without_conversion_is_rejected() -> None:
    with pytest.raises(RejectedByPolicyError, match="does not exceed"):
        ScalingResolver(_settings()).resolve(_context(), intrinsic_width=400)


def test_small_origin_with_conversion_keeps_intrinsic_width() -> None:
    settings = _settings(convertible_file_types=["webp"])

    decision = ScalingResolver(settings).resolve(_context(query_format="webp"), intrinsic_width=400)

    assert decision.width == 400
    assert decision.extension == ".webp"
    assert decision.strategy is ScaleStrategy.DIRECT
    assert decision.conversion_only is True


def test_global_webp_conversion_requires_accept_header() -> None:
    resolver = ScalingResolver(_settings(file_type_conversion="webp"))

    refused = resolver.resolve(_context(accepts_webp=False), intrinsic_width=1200)
    accepted = resolver.resolve(_context(accepts_webp=True), intrinsic_width=1200)

    assert refused.extension == ".jpg"
    assert accepted.extension == ".webp"


def test_global_conversion_to_other_format_ignores_accept_header() -> None:
    decision = ScalingResolver(_settings(file_type_conversion="png")).resolve(
        _context(), intrinsic_width=1200
    )

    assert decision.extension == ".png"


def test_query_conversion_overrides_global_target() -> None:
    settings = _settings(file_type_conversion="webp", convertible_file_types=["png"])

    decision = ScalingResolver(settings).resolve(
        _context(accepts_webp=True, query_format="png"), intrinsic_width=1200
    )

    assert decision.extension == ".png"


def test_query_conversion_outside_allow_list_is_ignored() -> None:
    settings = _settings(convertible_file_types=["png"])

    decision = ScalingResolver(settings).resolve(_context(query_format="gif"), intrinsic_width=1200)

    assert decision.extension == ".jpg"


def test_parse_device_cookie_reads_first_pair() -> None:
    signal = parse_device_cookie("theme=dark; screen=1,500; screen=2,800", "screen")

    assert signal == DeviceSignal(density=1.0, width=500.0)


def test_parse_device_cookie_requires_exact_name() -> None:
    signal = parse_device_cookie("myscreen=3,100; screen=1.5,360", "screen")

    assert signal == DeviceSignal(density=1.5, width=360.0)


@pytest.mark.parametrize(
    "header",
    [None, "", "theme=dark", "screen=abc,500", "screen=2", "screen=inf,500"],
)
def test_parse_device_cookie_ignores_unusable_values(header: str | None) -> None:
    assert parse_device_cookie(header, "screen") is None


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("300", 300),
        ("300px", 300),
        (" 42", 42),
        ("-5", -5),
        ("000300", 300),
        ("0" * 5000 + "300", 300),
        ("999999999", 999_999_999),
        ("1234567890", None),
        ("9" * 400, None),
        ("9" * 5000, None),
        ("abc", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_query_width(raw: str | None, expected: int | None) -> None:
    assert parse_query_width(raw) == expected


def test_read_request_signals_returns_new_context() -> None:
    context = _context(signal=None)

    enriched = read_request_signals(
        context,
        _settings(),
        query_params={"w": "300", "as": "WEBP"},
        cookie_header="screen=2,400",
        accept_header="image/avif,image/webp,*/*",
    )

    assert enriched is not context
    assert context.signal is None
    assert enriched.query_width == 300
    assert enriched.query_format == "webp"
    assert enriched.signal == DeviceSignal(density=2.0, width=400.0)
    assert enriched.accepts_webp is True
