"""
Integration tests for the build driver: resolution, caching, staleness,
inspection, composition and rendering together, with a recording renderer.
"""

import os

import pytest

from paperwright.contexts.building import BuildDriver, TargetOutcome
from paperwright.contexts.caching import ANNEX_F, CITATIONS
from paperwright.contexts.inspecting import ExternalClassifier, HeadingDepthAnalyzer

PAPER = """---
title: "Reflection for C++26"
document: P1234R0
date: 2024-05-22
audience: EWG
author:
  - name: A. Author
---

# Introduction

## Design

### Alternatives considered

# Wording
"""

SLIDES = """---
title: "Reflection"
---

# Motivation

## Example
"""


def _write_sources(settings, **documents):
    for name, text in documents.items():
        (settings.src_dir / name).write_text(text, encoding="utf-8")


def _age_everything(settings, seconds=100):
    """Push every output into the future so later touches are unambiguous."""
    for path in settings.out_dir.glob("*"):
        stat = path.stat()
        os.utime(path, (stat.st_atime + seconds, stat.st_mtime + seconds))


def _touch_future(path, seconds=1000):
    stat = path.stat()
    os.utime(path, (stat.st_atime + seconds, stat.st_mtime + seconds))


@pytest.mark.integration
def test_scenario_paper_and_slides(driver, renderer, settings):
    """P1234.md becomes HTML with a TOC depth; slides-foo.md becomes a beamer PDF without one."""
    _write_sources(settings, **{"P1234.md": PAPER, "slides-foo.md": SLIDES, "README.md": "# Readme"})

    report = driver.build()

    assert report.exit_code == 0
    assert [r.target.name for r in report.built] == ["P1234.html", "slides-foo.pdf"]
    assert (settings.out_dir / "P1234.html").exists()
    assert (settings.out_dir / "slides-foo.pdf").exists()

    paper_options = renderer.options_for("P1234.html")
    slides_options = renderer.options_for("slides-foo.pdf")
    assert paper_options.options["toc-depth"] == 3
    assert "to" not in paper_options.options
    assert "toc-depth" not in slides_options.options
    assert slides_options.options["to"] == "beamer"


@pytest.mark.integration
def test_second_build_is_a_no_op(driver, renderer, settings):
    _write_sources(settings, **{"P1234.md": PAPER, "slides-foo.md": SLIDES})

    first = driver.build()
    second = driver.build()

    assert len(first.built) == 2
    assert len(second.up_to_date) == 2
    assert len(renderer.calls) == 2


@pytest.mark.integration
def test_touching_a_config_layer_rebuilds_dependent_targets(driver, renderer, settings):
    _write_sources(settings, **{"P1.md": PAPER, "P2.md": PAPER, "slides-a.md": SLIDES})
    settings.repo_defaults.write_text("number-sections: false\n", encoding="utf-8")
    driver.build()
    _age_everything(settings)
    renderer.calls.clear()

    _touch_future(settings.repo_defaults)
    report = driver.build()

    assert renderer.rendered_names() == ["P1.html", "P2.html", "slides-a.pdf"]
    assert len(report.built) == 3
    assert renderer.options_for("P1.html").options["number-sections"] is False


@pytest.mark.integration
def test_touching_a_source_rebuilds_only_its_target(driver, renderer, settings):
    _write_sources(settings, **{"P1.md": PAPER, "P2.md": PAPER})
    driver.build()
    _age_everything(settings)
    renderer.calls.clear()

    _touch_future(settings.src_dir / "P2.md")
    report = driver.build()

    assert renderer.rendered_names() == ["P2.html"]
    assert [r.target.name for r in report.up_to_date] == ["P1.html"]


@pytest.mark.integration
def test_refreshed_resource_makes_targets_stale(driver, renderer, settings, fetchers):
    _write_sources(settings, **{"P1.md": PAPER})
    driver.build()
    _age_everything(settings)
    renderer.calls.clear()

    driver.update()
    _touch_future(driver.cache.path_for(ANNEX_F))
    driver.build()

    assert fetchers[ANNEX_F].calls == 2
    assert renderer.rendered_names() == ["P1.html"]


@pytest.mark.integration
def test_zero_optional_layers_builds_with_engine_defaults(driver, renderer, settings):
    _write_sources(settings, **{"P1.md": PAPER, "slides-a.md": SLIDES})
    assert not settings.repo_defaults.exists()
    assert not settings.repo_metadata.exists()

    report = driver.build()

    assert report.exit_code == 0
    for name in ("P1.html", "slides-a.pdf"):
        options = renderer.options_for(name)
        assert [layer.origin.label for layer in options.layers] == ["engine-defaults"]


@pytest.mark.integration
def test_failing_classifier_still_renders_without_toc_depth(settings, cache, renderer, tmp_path):
    script = tmp_path / "toc-depth.py"
    script.write_text("import sys\nsys.exit('cannot classify')\n", encoding="utf-8")
    driver = BuildDriver(
        settings, cache=cache, renderer=renderer, analyzer=ExternalClassifier(script, settings.python_bin)
    )
    _write_sources(settings, **{"P1.md": PAPER})

    report = driver.build()

    assert report.exit_code == 0
    assert "toc-depth" not in renderer.options_for("P1.html").options


@pytest.mark.integration
def test_render_failure_is_isolated(settings, cache, recording_renderer):
    renderer = recording_renderer(fail_for={"P2.html"}, stderr="Error producing PDF.\n! Undefined control sequence.")
    driver = BuildDriver(settings, cache=cache, renderer=renderer, analyzer=HeadingDepthAnalyzer())
    _write_sources(settings, **{"P1.md": PAPER, "P2.md": PAPER, "P3.md": PAPER})

    report = driver.build(jobs=1)

    assert report.exit_code == 1
    assert [r.target.name for r in report.built] == ["P1.html", "P3.html"]
    failed = report.failed[0]
    assert failed.target.name == "P2.html"
    assert failed.error == "Error producing PDF.\n! Undefined control sequence."
    assert not (settings.out_dir / "P2.html").exists()


@pytest.mark.integration
def test_fail_fast_skips_remaining_targets(settings, cache, recording_renderer):
    renderer = recording_renderer(fail_for={"P1.html"})
    driver = BuildDriver(settings, cache=cache, renderer=renderer, analyzer=HeadingDepthAnalyzer())
    _write_sources(settings, **{"P1.md": PAPER, "P2.md": PAPER, "P3.md": PAPER})

    report = driver.build(jobs=1, fail_fast=True)

    assert [r.outcome for r in report.results] == [
        TargetOutcome.FAILED,
        TargetOutcome.SKIPPED,
        TargetOutcome.SKIPPED,
    ]
    assert renderer.rendered_names() == ["P1.html"]
    assert report.exit_code == 1


@pytest.mark.integration
def test_unavailable_resource_fails_dependent_targets(settings, make_cache, counting_fetcher, failing_fetcher, renderer):
    cache = make_cache({CITATIONS: counting_fetcher(b"[]"), ANNEX_F: failing_fetcher()})
    driver = BuildDriver(settings, cache=cache, renderer=renderer, analyzer=HeadingDepthAnalyzer())
    _write_sources(settings, **{"P1.md": PAPER, "slides-a.md": SLIDES})

    report = driver.build()

    assert len(report.failed) == 2
    assert all("annex-f" in r.error for r in report.failed)
    assert renderer.calls == []


@pytest.mark.integration
def test_concurrent_build_fetches_each_resource_once(driver, fetchers, settings):
    _write_sources(settings, **{f"P{i}.md": PAPER for i in range(8)})

    report = driver.build(jobs=8)

    assert len(report.built) == 8
    assert fetchers[CITATIONS].calls == 1
    assert fetchers[ANNEX_F].calls == 1


@pytest.mark.integration
def test_force_rebuilds_fresh_targets(driver, renderer, settings):
    _write_sources(settings, **{"P1.md": PAPER})
    driver.build()

    report = driver.build(force=True)

    assert len(report.built) == 1
    assert report.results[0].reason == "forced"
    assert len(renderer.calls) == 2


@pytest.mark.integration
def test_requested_targets_only(driver, renderer, settings):
    _write_sources(settings, **{"P1.md": PAPER, "P2.md": PAPER})
    targets = [t for t in driver.resolve() if t.name == "P2.html"]

    driver.build(targets=targets)

    assert renderer.rendered_names() == ["P2.html"]


@pytest.mark.integration
def test_status_reports_without_fetching(driver, fetchers, settings):
    _write_sources(settings, **{"P1.md": PAPER})

    reports = driver.status()

    assert [r.stale for r in reports] == [True]
    assert fetchers[CITATIONS].calls == 0


@pytest.mark.integration
def test_clean_removes_outputs_and_cache(driver, settings):
    _write_sources(settings, **{"P1.md": PAPER})
    driver.build()

    removed = driver.clean()

    assert settings.out_dir in removed
    assert not settings.out_dir.exists()
    assert not (settings.cache_dir / "csl.json").exists()
    assert not (settings.cache_dir / "annex-f").exists()
    assert (settings.src_dir / "P1.md").exists()


@pytest.mark.integration
def test_invalid_layer_fails_targets_not_the_build(driver, renderer, settings):
    _write_sources(settings, **{"P1.md": PAPER})
    settings.repo_metadata.write_text("- not\n- a mapping\n", encoding="utf-8")

    report = driver.build()

    assert report.exit_code == 1
    assert "mapping" in report.failed[0].error
    assert renderer.calls == []


@pytest.mark.integration
@pytest.mark.parametrize("out_dir", ["src", "."])
def test_clean_refuses_to_remove_sources(settings, cache, renderer, out_dir):
    root = settings.src_dir.parent
    unsafe = settings.with_overrides(out_dir=root / out_dir)
    driver = BuildDriver(unsafe, cache=cache, renderer=renderer, analyzer=HeadingDepthAnalyzer())
    _write_sources(settings, **{"P1.md": PAPER})

    with pytest.raises(ValueError, match="source directory"):
        driver.clean()

    assert (settings.src_dir / "P1.md").exists()
