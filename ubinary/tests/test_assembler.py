import unittest

from ubinary.errors import BufferOverrun, DuplicateFieldName, EmptyInput
from ubinary.ingest.assembler import SegmentAssembler, UbinaryReaderConfig, select_segments
from ubinary.ingest.reader import decode
from ubinary.models.segments import NamedSegment

from _payload import f64s, header, i32s, tag, text, u8s


def _two_segment_file() -> bytes:
    return (
        tag("ubinary")
        + tag("first")
        + header(["a"], [10])
        + f64s([1.0])
        + tag("second")
        + header(["b", "label"], [3, 48])
        + i32s([4])
        + text("ok")
    )


class TestSegmentAssembler(unittest.TestCase):
    def test_merged_layout_concatenates_fields(self):
        data = decode(_two_segment_file())
        self.assertEqual(list(data.keys()), ["a", "b", "label"])
        self.assertEqual(data["a"], 1.0)
        self.assertEqual(data["b"], 4)
        self.assertEqual(data["label"], "ok")

    def test_by_tag_layout(self):
        cfg = UbinaryReaderConfig(layout="by_tag")
        data = decode(_two_segment_file(), config=cfg)
        self.assertEqual(list(data.keys()), ["first", "second"])
        self.assertEqual(data["first"], {"a": 1.0})
        self.assertEqual(data["second"]["label"], "ok")

    def test_requested_subset_in_discovery_order(self):
        res = SegmentAssembler().assemble(_two_segment_file(), tags=["second", "first"])
        self.assertEqual(res.tags, ("first", "second"))

        res = SegmentAssembler().assemble(_two_segment_file(), tags={"second"})
        self.assertEqual(res.tags, ("second",))
        self.assertEqual(res.keys(), ["b", "label"])

    def test_single_tag_string_request(self):
        data = decode(_two_segment_file(), tags="first")
        self.assertEqual(data, {"a": 1.0})

    def test_missing_requested_tag_is_reported(self):
        res = SegmentAssembler().assemble(_two_segment_file(), tags=["first", "nope"])
        self.assertEqual(res.tags, ("first",))
        self.assertTrue(any("nope" in w for w in res.warnings))

    def test_no_match_gives_empty_mapping(self):
        res = SegmentAssembler().assemble(_two_segment_file(), tags=["nope"])
        self.assertEqual(res.data, {})
        self.assertEqual(res.segments, ())

    def test_empty_request_selects_everything(self):
        res = SegmentAssembler().assemble(_two_segment_file(), tags=[])
        self.assertEqual(res.tags, ("first", "second"))

    def test_untagged_buffer_is_returned_unwrapped(self):
        buf = header(["a", "b"], [10, 10]) + f64s([3.5, -2.0])
        res = SegmentAssembler().assemble(buf)
        self.assertFalse(res.is_tagged)
        self.assertEqual(res.data, {"a": 3.5, "b": -2.0})
        self.assertEqual(res.segments[0].offset, 0)
        self.assertEqual(res.segments[0].end, len(buf))

    def test_untagged_buffer_ignores_requested_tags(self):
        buf = header(["a"], [5]) + u8s([1])
        res = SegmentAssembler().assemble(buf, tags=["x"])
        self.assertEqual(res.data, {"a": 1})
        self.assertTrue(any("no tags" in w for w in res.warnings))

    def test_empty_buffer(self):
        with self.assertRaises(EmptyInput):
            decode(b"")

    def test_duplicate_field_across_segments(self):
        buf = tag("one") + header(["x"], [10]) + f64s([1.0]) + tag("two") + header(["x!"], [10]) + f64s([2.0])
        with self.assertRaises(DuplicateFieldName) as ctx:
            decode(buf)
        self.assertEqual(ctx.exception.name, "x")

    def test_duplicate_sanitized_tag_in_by_tag_layout(self):
        buf = tag("a b") + header(["p"], [5]) + u8s([1]) + tag("aB") + header(["q"], [5]) + u8s([2])
        cfg = UbinaryReaderConfig(layout="by_tag")
        with self.assertRaises(DuplicateFieldName):
            decode(buf, config=cfg)
        self.assertEqual(decode(buf), {"p": 1, "q": 2})

    def test_tag_keys_are_sanitized(self):
        buf = tag("scan 1") + header(["p"], [5]) + u8s([1])
        res = SegmentAssembler(UbinaryReaderConfig(layout="by_tag")).assemble(buf)
        self.assertEqual(res.keys(), ["scan1"])
        self.assertEqual(res.segment("scan 1").key, "scan1")

    def test_strict_failure_publishes_nothing(self):
        buf = tag("good") + header(["a"], [10]) + f64s([1.0]) + tag("bad") + header(["b"], [10]) + b"\x00\x00"
        with self.assertRaises(BufferOverrun):
            SegmentAssembler().assemble(buf)

    def test_lenient_failure_keeps_other_segments(self):
        buf = tag("good") + header(["a"], [10]) + f64s([1.0]) + tag("bad") + header(["b"], [10]) + b"\x00\x00"
        res = SegmentAssembler(UbinaryReaderConfig(strict=False)).assemble(buf)
        self.assertEqual(res.data, {"a": 1.0})
        self.assertEqual(len(res.failures), 1)
        self.assertEqual(res.failures[0].tag, "bad")
        self.assertIn("BufferOverrun", res.failures[0].error)

    def test_lenient_mode_isolates_deeply_nested_segment(self):
        depth = 400
        deep = header(["c"] * depth + ["v"], [80, 1] * depth + [5]) + u8s([1])
        buf = tag("good") + header(["a"], [10]) + f64s([1.0]) + tag("deep") + deep
        res = SegmentAssembler(UbinaryReaderConfig(strict=False)).assemble(buf)
        self.assertEqual(res.data, {"a": 1.0})
        self.assertEqual([f.tag for f in res.failures], ["deep"])
        self.assertIn("MalformedHeader", res.failures[0].error)

    def test_unique_members_option(self):
        buf = header(["a", "a"], [10, 10]) + f64s([1.0, 2.0])
        self.assertEqual(decode(buf), {"a": 2.0})
        with self.assertRaises(DuplicateFieldName):
            decode(buf, config=UbinaryReaderConfig(unique_members=True))

    def test_segment_warnings_for_unknown_codes_and_leftover_names(self):
        buf = tag("t") + header(["m", "n", "spare"], [99, 5]) + b"\x01\x00\x00\x00" + u8s([2])
        res = SegmentAssembler().assemble(buf)
        seg = res.segment("t")
        self.assertTrue(any("unknown type code 99 at 'm'" in w for w in seg.warnings))
        self.assertTrue(any("1 unused field names" in w for w in seg.warnings))
        self.assertTrue(all(w.startswith("[t] ") for w in res.warnings))

    def test_invalid_layout(self):
        with self.assertRaises(ValueError):
            UbinaryReaderConfig(layout="flat")

    def test_select_segments(self):
        found = [NamedSegment("a", 1), NamedSegment("b", 2), NamedSegment("c", 3)]
        self.assertEqual([s.name for s in select_segments(found, None)], ["a", "b", "c"])
        self.assertEqual([s.name for s in select_segments(found, ["c", "a"])], ["a", "c"])


if __name__ == "__main__":
    unittest.main()
