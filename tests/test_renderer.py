"""Tests for view, layout and partial composition."""

import io

import pytest
from pydantic import ValidationError

from themeview import Renderer, Theme, ThemeConfig
from themeview.exceptions import FailureKind
from themeview.renderer import ViewOptions, partial_name
from themeview.resolver import Dialect


@pytest.fixture
def default_layout(write_template):
    return write_template("layouts/default.html.php", "<main>{{ wl_yield() }}</main>")


# =============================================================================
# Partial names
# =============================================================================


@pytest.mark.parametrize(
    "name, expected",
    [
        ("foo", "_foo"),
        ("_foo", "_foo"),
        ("a/b/foo", "a/b/_foo"),
        ("a/b/_foo", "a/b/_foo"),
        ("a_b/foo", "a_b/_foo"),
    ],
)
def test_partial_name(name, expected):
    assert partial_name(name) == expected


def test_partial_name_is_idempotent():
    assert partial_name(partial_name("posts/item")) == "posts/_item"


# =============================================================================
# render_template / render_partial / get_partial_content
# =============================================================================


def test_render_template_writes_to_output(renderer, write_template, out):
    write_template("hello.php", "Hello {{ name }}")

    assert renderer.render_template("hello", {"name": "Ann"}) is None
    assert out.getvalue() == "Hello Ann"


def test_render_template_compiles_haml(renderer, write_template, out, compilers):
    write_template("hello.html.haml", "Hi {{ name }}")

    renderer.render_template("hello", {"name": "Ann"})

    assert out.getvalue() == "<haml>Hi Ann</haml>"
    assert len(compilers[Dialect.HAML].calls) == 1
    assert compilers[Dialect.JADE].calls == []


def test_render_partial_uses_underscore_convention(renderer, write_template, out):
    write_template("posts/_item.html.php", "item {{ n }}")

    renderer.render_partial("posts/item", {"n": 1})
    renderer.render_partial("posts/_item", {"n": 2})

    assert out.getvalue() == "item 1item 2"


def test_get_partial_content_returns_output(renderer, write_template, out):
    write_template("_badge.php", "<span>{{ label }}</span>")

    content = renderer.get_partial_content("badge", {"label": "new"})

    assert content == "<span>new</span>"
    assert out.getvalue() == ""


def test_get_partial_content_matches_render_partial(
    theme, compilers, write_template
):
    write_template("_card.html.jade", "card {{ title }}")
    streamed = io.StringIO()
    Renderer(theme, compilers=compilers, out=streamed).render_partial(
        "card", {"title": "T"}
    )

    content = Renderer(theme, compilers=compilers, out=io.StringIO()).get_partial_content(
        "card", {"title": "T"}
    )

    assert content == streamed.getvalue() == "<jade>card T</jade>"


# =============================================================================
# render_view and wl_yield
# =============================================================================


def test_layout_yields_view_with_its_locals(renderer, write_template, out, default_layout):
    write_template("home.php", "x={{ x }}")

    failure = renderer.render_view("home", {"layout": "default", "locals": {"x": 1}})

    assert failure is None
    assert out.getvalue() == "<main>x=1</main>"


def test_layout_defaults_to_default(renderer, write_template, out, default_layout):
    write_template("home.php", "home")

    renderer.render_view("home")

    assert out.getvalue() == "<main>home</main>"


def test_layout_sees_view_locals(renderer, write_template, out):
    write_template("layouts/titled.php", "<title>{{ title }}</title>{{ wl_yield() }}")
    write_template("posts/index.php", "<h1>{{ title }}</h1>")

    renderer.render_view("posts/index", {"layout": "titled", "locals": {"title": "Posts"}})

    assert out.getvalue() == "<title>Posts</title><h1>Posts</h1>"


def test_unknown_options_are_ignored(renderer, write_template, out, default_layout):
    write_template("home.php", "ok")

    renderer.render_view("home", {"locals": {}, "status": 404})

    assert out.getvalue() == "<main>ok</main>"


def test_theme_default_layout(tmp_path, compilers, display):
    (tmp_path / "views" / "layouts").mkdir(parents=True)
    (tmp_path / "views" / "layouts" / "site.php").write_text("[{{ wl_yield() }}]")
    (tmp_path / "views" / "home.php").write_text("home")
    out = io.StringIO()
    theme = Theme(root=tmp_path, config=ThemeConfig(default_layout="site"))

    Renderer(theme, compilers=compilers, display_error=display, out=out).render_view("home")

    assert out.getvalue() == "[home]"


def test_compiled_view_in_native_layout(renderer, write_template, out, default_layout):
    write_template("home.html.haml", "Hi {{ name }}")

    renderer.render_view("home", {"locals": {"name": "Ann"}})

    assert out.getvalue() == "<main><haml>Hi Ann</haml></main>"


def test_partials_from_layout_and_view(renderer, write_template, out):
    write_template(
        "layouts/default.php",
        "{{ render_partial('shared/nav', {'active': page}) }}{{ wl_yield() }}",
    )
    write_template("shared/_nav.php", "nav:{{ active }}|")
    write_template("home.php", "{{ render_partial('item', {'n': 1}) }}")
    write_template("_item.php", "item{{ n }}")

    renderer.render_view("home", {"locals": {"page": "home"}})

    assert out.getvalue() == "nav:home|item1"


def test_get_partial_content_helper(renderer, write_template, out, default_layout):
    write_template("_tag.php", "tag")
    write_template("home.php", "{{ get_partial_content('tag') | upper }}")

    renderer.render_view("home")

    assert out.getvalue() == "<main>TAG</main>"


def test_nested_view_restores_outer_view(renderer, write_template, out):
    write_template("layouts/default.php", "<main>{{ wl_yield() }}</main><aside>{{ wl_yield() }}</aside>")
    write_template("layouts/frame.php", "[{{ wl_yield() }}]")
    write_template("home.php", "A{{ render_view('clock', {'layout': 'frame', 'locals': {'t': 5}}) }}B")
    write_template("clock.php", "t={{ t }}")

    renderer.render_view("home")

    assert out.getvalue() == "<main>A[t=5]B</main><aside>A[t=5]B</aside>"


def test_locals_may_shadow_helpers(renderer, write_template, out, default_layout):
    write_template("home.php", "{{ render_partial }}")

    renderer.render_view("home", {"locals": {"render_partial": "shadowed"}})

    assert out.getvalue() == "<main>shadowed</main>"


def test_autoescape_does_not_escape_rendered_views(tmp_path, compilers):
    (tmp_path / "views" / "layouts").mkdir(parents=True)
    (tmp_path / "views" / "layouts" / "default.php").write_text("{{ wl_yield() }}|{{ raw }}")
    (tmp_path / "views" / "home.php").write_text("<b>{{ raw }}</b>")
    out = io.StringIO()
    theme = Theme(root=tmp_path, config=ThemeConfig(autoescape=True))

    Renderer(theme, compilers=compilers, out=out).render_view("home", {"locals": {"raw": "<i>"}})

    assert out.getvalue() == "<b>&lt;i&gt;</b>|&lt;i&gt;"


def test_render_to_string(renderer, write_template, out, default_layout):
    write_template("home.php", "home")

    assert renderer.render_to_string("home") == "<main>home</main>"
    assert out.getvalue() == ""


def test_invalid_options_propagate(renderer):
    with pytest.raises(ValidationError):
        renderer.render_view("home", {"locals": "not a mapping"})


def test_view_options_defaults():
    opts = ViewOptions()
    assert opts.layout == "default"
    assert opts.locals == {}


# =============================================================================
# Failures
# =============================================================================


def test_missing_template(renderer, display, out):
    failure = renderer.render_template("nope")

    assert failure.kind is FailureKind.TEMPLATE_MISSING
    assert failure.title == "Template missing"
    assert display.calls == [("Template missing", failure.message)]
    assert "'nope'" in failure.message
    assert out.getvalue() == "ERROR[Template missing]"


def test_missing_view_discards_layout_output(renderer, display, out, default_layout):
    failure = renderer.render_view("nope")

    assert failure.title == "Template missing"
    assert out.getvalue() == "ERROR[Template missing]"
    assert len(display.calls) == 1


def test_missing_layout(renderer, write_template, out):
    write_template("home.php", "home")

    failure = renderer.render_view("home", {"layout": "gone"})

    assert failure.title == "Template missing"
    assert "layouts/gone" in failure.message
    assert out.getvalue() == "ERROR[Template missing]"


def test_failure_in_nested_partial_is_reported_once(
    renderer, write_template, display, out, default_layout
):
    write_template("home.php", "before{{ render_partial('broken') }}after")
    write_template("_broken.php", "{{ 1 // 0 }}")

    failure = renderer.render_view("home")

    assert failure.kind is FailureKind.UNCLASSIFIED
    assert failure.title == "ZeroDivisionError"
    assert display.calls == [("ZeroDivisionError", failure.message)]
    assert out.getvalue() == "ERROR[ZeroDivisionError]"


def test_undefined_helper_is_unclassified(renderer, write_template, out):
    write_template("home.php", "{{ nope() }}")

    failure = renderer.render_template("home")

    assert failure.title == "UndefinedError"
    assert "nope" in failure.message


def test_compiler_failure(theme, write_template, display, out):
    def broken(source, path):
        raise SyntaxError("unexpected indent")

    write_template("home.html.haml", "  %p")
    renderer = Renderer(
        theme, compilers={Dialect.HAML: broken}, display_error=display, out=out
    )

    failure = renderer.render_template("home")

    assert failure.kind is FailureKind.COMPILER_FAILURE
    assert failure.title == "SyntaxError"
    assert failure.message == "unexpected indent"


def test_cache_directory_not_writable(tmp_path, compilers, display):
    (tmp_path / "views").mkdir()
    (tmp_path / "views" / "home.haml").write_text("x")
    (tmp_path / "blocker").write_text("")
    out = io.StringIO()
    theme = Theme(root=tmp_path, config=ThemeConfig(temp_dir="blocker/tmp"))
    renderer = Renderer(theme, compilers=compilers, display_error=display, out=out)

    failure = renderer.render_template("home")

    assert failure.kind is FailureKind.DIRECTORY_NOT_WRITABLE
    assert failure.title == "Directory not writable"
    assert compilers[Dialect.HAML].calls == []


def test_yield_outside_view(renderer, display, out):
    failure = renderer.wl_yield()

    assert failure.title == "Yield outside view"
    assert out.getvalue() == "ERROR[Yield outside view]"


def test_get_partial_content_failure(renderer, out):
    assert renderer.get_partial_content("missing") == ""
    assert out.getvalue() == "ERROR[Template missing]"


def test_renderer_recovers_after_failure(renderer, write_template, out, default_layout):
    write_template("home.php", "home")

    renderer.render_view("nope")
    renderer.render_view("home")

    assert out.getvalue() == "ERROR[Template missing]<main>home</main>"
    assert renderer.output.depth == 0


def test_render_to_string_returns_error_page(renderer, out):
    assert renderer.render_to_string("nope") == "ERROR[Template missing]"
    assert out.getvalue() == ""


def test_failing_partial_discards_streamed_output(renderer, write_template, out):
    write_template("_broken.php", "before{{ 1 // 0 }}after")

    failure = renderer.render_partial("broken")

    assert failure.title == "ZeroDivisionError"
    assert out.getvalue() == "ERROR[ZeroDivisionError]"
    assert renderer.output.depth == 0


def test_failing_template_discards_streamed_output(renderer, write_template, out):
    write_template("ok.php", "ok|")
    write_template("home.php", "{% for n in [1, 0] %}{{ 1 // n }}{% endfor %}")

    renderer.render_template("ok")
    failure = renderer.render_template("home")

    assert failure.title == "ZeroDivisionError"
    assert out.getvalue() == "ok|ERROR[ZeroDivisionError]"


def test_partial_content_helper_is_not_escaped(tmp_path, compilers):
    (tmp_path / "views").mkdir()
    (tmp_path / "views" / "_tag.php").write_text("<b>t</b>")
    (tmp_path / "views" / "home.php").write_text(
        "{{ get_partial_content('tag') }}|{{ render_partial('tag') }}"
    )
    out = io.StringIO()
    theme = Theme(root=tmp_path, config=ThemeConfig(autoescape=True))

    Renderer(theme, compilers=compilers, out=out).render_template("home")

    assert out.getvalue() == "<b>t</b>|<b>t</b>"
