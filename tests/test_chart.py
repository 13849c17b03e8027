from __future__ import annotations

import io
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from types import SimpleNamespace
import json

from fakes import person

from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure

from famchart import main
from famchart.cards import CARD_HEIGHT, CARD_WIDTH, CardBoard, order_generation
from famchart.chart import FamilyChart
from famchart.config import ChartConfig
from famchart.geometry import Viewport
from famchart.graph import build_graph

RECORDS = [
    {"id": "hans", "name": "Hans Schüpbach", "birthDate": "1901", "generation": 0, "partners": ["anna"]},
    {"id": "anna", "name": "Anna Schüpbach", "ledigname": "Keller", "generation": 0, "partners": ["hans"]},
    {"id": "peter", "name": "Peter Schüpbach", "birthDate": "1930", "generation": 1, "parents": ["hans", "anna"]},
    {"id": "rosa", "name": "Rosa Schüpbach", "birthDate": "1933", "generation": 1, "parents": ["hans", "anna"]},
    {"id": "eva", "name": "Eva Meier", "generation": 1, "partners": ["peter"]},
    {"id": "adrian", "name": "Adrian Schüpbach", "birthDate": "1960", "generation": 2, "parents": ["peter", "eva"]},
]


def family_graph():
    return build_graph(
        [
            person("hans", partners=["anna"]),
            person("anna", partners=["hans"]),
            person("peter", parents=["hans", "anna"], generation=1),
            person("rosa", parents=["hans", "anna"], generation=1),
            person("eva", partners=["peter"], generation=1),
            person("adrian", parents=["peter", "eva"], generation=2),
        ]
    )


def make_chart(**config_kwargs) -> FamilyChart:
    fig = Figure()
    FigureCanvasAgg(fig)
    config = ChartConfig(seed=5, **config_kwargs)
    return FamilyChart(family_graph(), fig, config)


def click_event(chart: FamilyChart, entity_id: str):
    rect = chart.board.elements[entity_id].rect
    x = rect.center.x - chart.viewport.scroll_x
    y = chart.viewport.height - (rect.center.y - chart.viewport.scroll_y)
    return SimpleNamespace(x=x, y=y)


class CardBoardTests(unittest.TestCase):
    def test_rows_follow_generations(self) -> None:
        board = CardBoard(family_graph(), Viewport(1200, 800))
        board.layout()
        tops = {eid: el.rect.top for eid, el in board.elements.items()}
        self.assertEqual(tops["hans"], tops["anna"])
        self.assertEqual(tops["peter"], tops["rosa"])
        self.assertLess(tops["hans"], tops["peter"])
        self.assertLess(tops["peter"], tops["adrian"])
        self.assertEqual(board.viewport.document_height, tops["adrian"] + CARD_HEIGHT + 60)

    def test_partners_are_seated_together(self) -> None:
        row = order_generation(
            [person("peter", partners=[]), person("rosa"), person("eva", partners=["peter"])]
        )
        self.assertEqual([e.id for e in row], ["peter", "rosa", "eva"])
        row = order_generation([person("peter", partners=["eva"]), person("rosa"), person("eva")])
        self.assertEqual([e.id for e in row], ["peter", "eva", "rosa"])

    def test_filtered_cards_are_detached(self) -> None:
        board = CardBoard(family_graph(), Viewport(1200, 800), filtered_out={"eva"})
        board.layout()
        self.assertFalse(board.elements["eva"].is_attached())
        self.assertIsNone(board.rect("eva"))
        self.assertTrue(board.elements["eva"].bounding_rect().is_empty())

    def test_geometry_is_reported_in_viewport_coordinates(self) -> None:
        viewport = Viewport(1200, 300)
        board = CardBoard(family_graph(), viewport)
        board.layout()
        doc_top = board.elements["adrian"].rect.top
        viewport.scroll_to(100)
        self.assertEqual(board.rect("adrian").top, doc_top - 100)
        portrait = board.portrait_rect("adrian")
        self.assertEqual(portrait.center.x, board.rect("adrian").center.x)
        self.assertLess(portrait.width, CARD_WIDTH)

    def test_hit_test(self) -> None:
        board = CardBoard(family_graph(), Viewport(1200, 800))
        board.layout()
        center = board.elements["rosa"].rect.center
        self.assertEqual(board.hit_test(center.x, center.y), "rosa")
        self.assertIsNone(board.hit_test(1, 1))

    def test_unknown_layout(self) -> None:
        with self.assertRaises(ValueError):
            CardBoard(family_graph(), Viewport(100, 100), layout="circle")


class FamilyChartTests(unittest.TestCase):
    def test_hydrate_focuses_and_draws(self) -> None:
        chart = make_chart(progressive_reveal=False)
        chart.hydrate("adrian")
        self.assertTrue(chart.board.loaded)
        self.assertEqual(chart.session.focus_id, "adrian")
        self.assertEqual(chart.session.role_of("peter"), "lineage")
        self.assertEqual(chart.session.role_of("hans"), "dimmed")
        kinds = sorted(c.kind for c in chart.renderer.last_frame)
        # three children with parents, two partner pairs
        self.assertEqual(kinds, ["lineage"] * 3 + ["partner"] * 2)

    def test_default_focus_is_first_renderable(self) -> None:
        chart = make_chart()
        chart.hydrate()
        self.assertEqual(chart.session.focus_id, "hans")

    def test_click_changes_focus(self) -> None:
        chart = make_chart()
        chart.hydrate("hans")
        chart.on_click(click_event(chart, "rosa"))
        self.assertEqual(chart.session.focus_id, "rosa")
        self.assertEqual(chart.session.role_of("peter"), "sibling")
        self.assertIn("sibling", chart.board.elements["peter"].classes)

    def test_click_on_empty_space_keeps_focus(self) -> None:
        chart = make_chart()
        chart.hydrate("hans")
        chart.on_click(SimpleNamespace(x=1, y=1))
        chart.on_click(SimpleNamespace(x=None, y=None))
        self.assertEqual(chart.session.focus_id, "hans")

    def test_unknown_focus_is_ignored(self) -> None:
        chart = make_chart()
        chart.hydrate("hans")
        with self.assertLogs("famchart.highlight", level="WARNING"):
            self.assertFalse(chart.focus("ghost"))
        self.assertEqual(chart.session.focus_id, "hans")

    def test_small_viewport_reveals_on_scroll(self) -> None:
        chart = make_chart(viewport_height=200)
        chart.hydrate("hans")
        adrian = chart.board.elements["adrian"]
        self.assertTrue(chart.board.elements["hans"].revealed)
        self.assertFalse(adrian.revealed)

        for _ in range(20):
            chart.on_scroll(SimpleNamespace(step=-1))
        self.assertEqual(chart.viewport.scroll_y, chart.viewport.max_scroll_y)
        self.assertTrue(adrian.revealed)

    def test_resize_relayouts_and_keeps_curve_size(self) -> None:
        chart = make_chart()
        chart.hydrate("hans")
        before = [curve.end for curve in chart.renderer.curves]
        chart.on_resize(SimpleNamespace(width=1600, height=900))
        after = [curve.end for curve in chart.renderer.curves]
        self.assertNotEqual(before, after)
        self.assertTrue(all(len(curve.points) == 41 for curve in chart.renderer.curves))
        self.assertEqual(chart.renderer.surface.width, 1600)

    def test_fixed_overlay(self) -> None:
        chart = make_chart(overlay="fixed", viewport_height=300)
        chart.hydrate("hans")
        self.assertIsNot(chart.renderer.surface.ax, chart.ax)
        chart.on_scroll(SimpleNamespace(step=-1))
        self.assertGreater(chart.viewport.scroll_y, 0)

    def test_missing_surface_disables_connectors_once(self) -> None:
        chart = make_chart()
        with self.assertLogs("famchart.chart", level="ERROR") as logs:
            self.assertIsNone(chart._create_renderer(None))
        self.assertEqual(len(logs.output), 1)

    def test_start_and_stop(self) -> None:
        chart = make_chart()
        chart.hydrate("hans")
        chart.start()
        self.assertTrue(chart.renderer.loop.running)
        chart.stop()
        chart.stop()
        self.assertFalse(chart.renderer.loop.running)

    def test_save_png(self) -> None:
        chart = make_chart(progressive_reveal=False)
        chart.hydrate("hans")
        with tempfile.TemporaryDirectory() as td:
            out = Path(td) / "chart.png"
            chart.save(out)
            self.assertEqual(out.read_bytes()[:8], b"\x89PNG\r\n\x1a\n")


class MainTests(unittest.TestCase):
    def test_export_from_json(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            records = Path(td) / "family.json"
            records.write_text(json.dumps(RECORDS), encoding="utf-8")
            out = Path(td) / "chart.svg"
            with redirect_stdout(io.StringIO()) as stdout:
                code = main.main(
                    [str(records), "--focus", "adrian", "--name-filter", "Schüpbach",
                     "--seed", "1", "-o", str(out)]
                )
            self.assertEqual(code, 0)
            self.assertIn("<svg", out.read_text(encoding="utf-8"))
            self.assertIn("Found 6 persons", stdout.getvalue())

    def test_missing_file(self) -> None:
        with redirect_stdout(io.StringIO()), tempfile.TemporaryDirectory() as td:
            code = main.main([str(Path(td) / "missing.json")])
        self.assertEqual(code, 1)

    def test_malformed_record_exits_with_error(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            records = Path(td) / "family.json"
            records.write_text("[1]", encoding="utf-8")
            with redirect_stdout(io.StringIO()), redirect_stderr(io.StringIO()) as stderr:
                code = main.main([str(records)])
        self.assertEqual(code, 1)
        self.assertIn("must be an object", stderr.getvalue())


if __name__ == "__main__":
    unittest.main()
