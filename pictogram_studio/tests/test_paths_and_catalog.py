from __future__ import annotations

import json
import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from pictogram_studio.api import schemas
from pictogram_studio.api.errors import CatalogUnavailable
from pictogram_studio.compiler.catalog import format_display_name, list_catalog, safe_list_catalog
from pictogram_studio.scripts import generate_data
from pictogram_studio.services import config
from pictogram_studio.services.paths import PathResolver


FIXTURE_DIR = Path(__file__).parent / "fixtures"
PUBLIC_DIR = FIXTURE_DIR / "public"

PUBLIC_HOST = "smithinator100.github.io"


def public_resolver() -> PathResolver:
    return PathResolver(hostname=PUBLIC_HOST, public_hostname=PUBLIC_HOST, public_base_path="/pictogram-poc")


def local_resolver() -> PathResolver:
    return PathResolver(hostname="localhost", public_hostname=PUBLIC_HOST, public_base_path="/pictogram-poc")


class TestSettings(unittest.TestCase):
    def test_fetch_timeout_parsing(self):
        with mock.patch.dict(os.environ, {"PICTOGRAM_FETCH_TIMEOUT_S": " 12.5 "}):
            self.assertEqual(config._env_float("PICTOGRAM_FETCH_TIMEOUT_S"), 12.5)
        with mock.patch.dict(os.environ, {"PICTOGRAM_FETCH_TIMEOUT_S": ""}):
            self.assertIsNone(config._env_float("PICTOGRAM_FETCH_TIMEOUT_S"))

    def test_malformed_fetch_timeout_falls_back_to_none(self):
        with mock.patch.dict(os.environ, {"PICTOGRAM_FETCH_TIMEOUT_S": "ten seconds"}):
            with self.assertLogs("pictogram_studio.services.config", level="WARNING") as logs:
                self.assertIsNone(config._env_float("PICTOGRAM_FETCH_TIMEOUT_S"))
        self.assertIn("PICTOGRAM_FETCH_TIMEOUT_S", logs.output[0])


class TestPathResolver(unittest.TestCase):
    def test_base_path_depends_on_hostname(self):
        self.assertEqual(public_resolver().base_path, "/pictogram-poc")
        self.assertEqual(local_resolver().base_path, "")

    def test_create_path_normalises_slashes(self):
        resolver = public_resolver()
        self.assertEqual(resolver.create_path("images//pictogram.svg"), "/pictogram-poc/images/pictogram.svg")
        self.assertEqual(local_resolver().create_path("images//pictogram.svg"), "/images/pictogram.svg")

    def test_api_and_asset_paths(self):
        resolver = public_resolver()
        self.assertEqual(resolver.create_api_path("/pictograms"), "/pictogram-poc/api/pictograms")
        self.assertEqual(resolver.create_asset_path("/lottie/intro.json"), "/pictogram-poc/lottie/intro.json")
        self.assertEqual(resolver.motion_image_prefix, "/pictogram-poc/lottie/images/")
        self.assertEqual(local_resolver().icon_prefix, "/images/")
        self.assertEqual(local_resolver().data_path("extras.json"), "/data/extras.json")

    def test_normalize_asset_prefix_is_idempotent(self):
        samples = [
            "",
            "/",
            "images/",
            "/lottie/images/",
            "//lottie//images//",
            "/pictogram-poc",
            "/pictogram-poc/images/",
            "/pictogram-pocket/images/",
            "api/extras",
        ]
        for resolver in (public_resolver(), local_resolver()):
            for sample in samples:
                once = resolver.normalize_asset_prefix(sample)
                self.assertEqual(resolver.normalize_asset_prefix(once), once, msg=f"{resolver.hostname}: {sample!r}")

    def test_no_double_prefixing(self):
        resolver = public_resolver()
        once = resolver.create_asset_path("/images/")
        self.assertEqual(resolver.create_asset_path(once), "/pictogram-poc/images/")
        self.assertEqual(resolver.normalize_asset_prefix("/pictogram-pocket/x"), "/pictogram-poc/pictogram-pocket/x")

    def test_from_url_uses_hostname(self):
        self.assertEqual(PathResolver.from_url("https://smithinator100.github.io/pictogram-poc/").hostname, PUBLIC_HOST)
        self.assertEqual(PathResolver.from_url("http://127.0.0.1:3000").hostname, "127.0.0.1")


class TestCatalogReader(unittest.TestCase):
    def test_format_display_name(self):
        self.assertEqual(format_display_name("pictogram-shield-green.svg"), "Pictogram Shield Green")
        self.assertEqual(format_display_name("extra_STAR-badge.png"), "Extra Star Badge")
        self.assertEqual(format_display_name("scale-in-burst.json"), "Scale In Burst")
        self.assertEqual(format_display_name("README"), "Readme")

    def test_pictograms_are_filtered_by_prefix_and_extension(self):
        entries = list_catalog(schemas.CatalogKind.pictograms, PUBLIC_DIR)
        self.assertEqual(
            [entry.filename for entry in entries],
            ["pictogram-placeholder.svg", "pictogram-shield-green.svg"],
        )
        self.assertEqual(entries[1].name, "Pictogram Shield Green")

    def test_extras_listing(self):
        entries = list_catalog("extras", PUBLIC_DIR)
        self.assertEqual(
            [entry.filename for entry in entries],
            ["extra-broken.svg", "extra-check.svg", "extra_star-badge.svg"],
        )
        self.assertEqual(entries[2].name, "Extra Star Badge")

    def test_motion_presets_listing_skips_directories_and_other_files(self):
        entries = list_catalog(schemas.CatalogKind.lottie_animations, PUBLIC_DIR)
        self.assertEqual(
            [entry.filename for entry in entries],
            ["broken.json", "not-an-animation.json", "scale-in-burst.json", "slide-in-bottom.json"],
        )

    def test_unreadable_directory(self):
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(CatalogUnavailable) as ctx:
                list_catalog(schemas.CatalogKind.pictograms, tmp)
            self.assertEqual(ctx.exception.code, "CATALOG_UNAVAILABLE")

            with self.assertLogs("pictogram_studio.compiler.catalog", level="WARNING"):
                self.assertEqual(safe_list_catalog(schemas.CatalogKind.extras, tmp), [])


class TestGenerateData(unittest.TestCase):
    def test_generate_all_writes_static_listings(self):
        with tempfile.TemporaryDirectory() as tmp:
            public = Path(tmp) / "public"
            shutil.copytree(PUBLIC_DIR, public)

            generated = generate_data.generate_all(public)
            self.assertEqual(len(generated[schemas.CatalogKind.pictograms]), 2)

            pictograms = json.loads((public / "data" / "pictograms.json").read_text(encoding="utf-8"))
            self.assertEqual(pictograms[0], {"name": "Pictogram Placeholder", "filename": "pictogram-placeholder.svg"})

            presets = json.loads((public / "data" / "lottie-animations.json").read_text(encoding="utf-8"))
            self.assertIn({"name": "Slide In Bottom", "filename": "slide-in-bottom.json"}, presets)
            self.assertTrue((public / "data" / "extras.json").is_file())

    def test_main_reports_failure_for_missing_directory(self):
        with tempfile.TemporaryDirectory() as tmp:
            missing = str(Path(tmp) / "missing")
            self.assertEqual(generate_data.main(["--public-dir", missing, "--log-level", "CRITICAL"]), 1)

    def test_main_succeeds(self):
        with tempfile.TemporaryDirectory() as tmp:
            public = Path(tmp) / "public"
            shutil.copytree(PUBLIC_DIR, public)
            self.assertEqual(generate_data.main(["--public-dir", str(public)]), 0)
            self.assertTrue((public / "data" / "lottie-animations.json").is_file())


if __name__ == "__main__":
    unittest.main()
