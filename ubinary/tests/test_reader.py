import unittest
import tempfile
from pathlib import Path

import numpy as np

from ubinary.ingest.assembler import UbinaryReaderConfig
from ubinary.ingest.reader import UbinaryReader, load
from ubinary.models.values import Waveform

from _payload import f64s, header, i32s, tag, text, u32, waveform


class TestUbinaryReader(unittest.TestCase):
    def _write(self, path: Path, payload: bytes) -> Path:
        path.write_bytes(payload)
        return path

    def _acquisition(self) -> bytes:
        # typical layout: a settings block and a measurement block
        settings = tag("settings") + header(["Operator", "Gain"], [48, 10]) + text("ab") + f64s([2.0])
        names = ["scan", "x", "", "c", "", "trace"]
        types = [80, 2, 64, 1, 10, 64, 1, 3, 84]
        scan = (
            tag("scan")
            + header(names, types)
            + u32(3) + f64s([0.0, 0.5, 1.0])
            + u32(2) + i32s([10, 20])
            + waveform(2082844800 + 3600, 0, 1e-3, [0.1, 0.2])
        )
        return tag("ubinary") + settings + scan

    def test_read_tagged_file(self):
        with tempfile.TemporaryDirectory() as d:
            p = self._write(Path(d) / "acq.bin", self._acquisition())
            res = UbinaryReader().read(p)

            self.assertEqual(res.source_path, p.resolve())
            self.assertEqual(res.tags, ("settings", "scan"))
            self.assertEqual(res.keys(), ["Operator", "Gain", "scan", "trace"])
            self.assertEqual(res["Operator"], "ab")
            np.testing.assert_allclose(res["scan"]["x"], [0.0, 0.5, 1.0])
            self.assertEqual(res["scan"]["c"].tolist(), [10, 20])
            self.assertIsInstance(res["trace"], Waveform)
            self.assertEqual(res["trace"].timestamp2, 3600)

    def test_segment_byte_ranges(self):
        with tempfile.TemporaryDirectory() as d:
            buf = self._acquisition()
            p = self._write(Path(d) / "acq.bin", buf)
            res = UbinaryReader().read(p)
            self.assertEqual(res.segments[1].end, len(buf))
            self.assertEqual(res.segments[0].end, buf.index(b"@@@@@scan"))

    def test_list_tags(self):
        with tempfile.TemporaryDirectory() as d:
            p = self._write(Path(d) / "acq.bin", self._acquisition())
            self.assertEqual(UbinaryReader().list_tags(p), ["settings", "scan"])

    def test_load_with_tags_and_layout(self):
        with tempfile.TemporaryDirectory() as d:
            p = self._write(Path(d) / "acq.bin", self._acquisition())
            data = load(p, tags=["settings"], config=UbinaryReaderConfig(layout="by_tag"))
            self.assertEqual(list(data.keys()), ["settings"])
            self.assertEqual(data["settings"]["Gain"], 2.0)

    def test_untagged_file(self):
        with tempfile.TemporaryDirectory() as d:
            p = self._write(Path(d) / "plain.bin", header(["v"], [10]) + f64s([9.0]))
            self.assertEqual(load(p), {"v": 9.0})

    def test_missing_file(self):
        with tempfile.TemporaryDirectory() as d:
            with self.assertRaises(FileNotFoundError):
                UbinaryReader().read(Path(d) / "nope.bin")


if __name__ == "__main__":
    unittest.main()
