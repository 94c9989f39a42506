from osd_ext_info.overlay import StyleOverlay, StyleSnapshot
from osd_ext_info.registry import ModalityConfig


def clock_like():
    return ModalityConfig.from_options("osd-clock", {
        "interval": "15m",
        "duration": 2.5,
        "osd-scale": 2,
        "osd-bold": True,
    })


def test_render_snapshots_exactly_the_override_keys(host):
    overlay = StyleOverlay(host)

    snapshot = overlay.render("10:15", clock_like())

    assert snapshot == StyleSnapshot("osd-clock", {"osd-scale": 1, "osd-bold": False})
    assert "osd-align-x" not in snapshot.values
    assert host.properties["osd-scale"] == 2
    assert host.properties["osd-bold"] is True
    assert host.properties["osd-align-x"] == "center"


def test_render_shows_with_overrides_in_place(host):
    StyleOverlay(host).render("10:15", clock_like())

    text, duration, style = host.shown[0]
    assert (text, duration) == ("10:15", 2.5)
    assert style["osd-scale"] == 2


def test_each_render_gets_its_own_snapshot(host):
    overlay = StyleOverlay(host)
    first = overlay.render("a", clock_like())
    second = overlay.render("b", clock_like())

    assert first.values["osd-scale"] == 1
    assert second.values["osd-scale"] == 2


def test_restore_puts_values_back(host):
    overlay = StyleOverlay(host)
    snapshot = overlay.render("10:15", clock_like())

    overlay.restore(snapshot)

    assert host.properties["osd-scale"] == 1
    assert host.properties["osd-bold"] is False


def test_no_overrides_means_empty_snapshot(host):
    plain = ModalityConfig.from_options("osd-email", {"interval": "1h", "duration": 3.5})

    snapshot = StyleOverlay(host).render("No new emails", plain)

    assert not snapshot
    assert host.set_calls == []
    assert host.shown[0][0] == "No new emails"
