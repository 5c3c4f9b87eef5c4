import asyncio
import os
import sys
import unittest
from types import SimpleNamespace

# Ensure project src/ is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from services.ai import (  # noqa: E402
    ADMIN_UNAVAILABLE,
    CAPTION_UNAVAILABLE,
    SUMMARY_UNAVAILABLE,
    AIAssistant,
    catalog_context,
)
from store.models import Product  # noqa: E402
from utils.config import Config  # noqa: E402

CATALOG = [
    Product("1", "CardioSafe-10", composition="Atorvastatin 10mg", division="Cardiac", tags=("Statin",)),
    Product("p", "Prescription Pads", is_promotional=True),
]


class FakeModels:
    def __init__(self, text=None, error=None, delay=0.0):
        self.text = text
        self.error = error
        self.delay = delay
        self.calls = []

    async def generate_content(self, model, contents):
        self.calls.append((model, contents))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return SimpleNamespace(text=self.text)


def fake_client(models: FakeModels):
    return SimpleNamespace(aio=SimpleNamespace(models=models))


class UnconfiguredAssistantTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.ai = AIAssistant.from_config(Config(ai_api_key=""))

    async def test_fallbacks(self):
        self.assertFalse(self.ai.available)
        self.assertEqual(await self.ai.summarize_query("fever", CATALOG), SUMMARY_UNAVAILABLE)
        self.assertEqual(await self.ai.caption(CATALOG[0]), CAPTION_UNAVAILABLE)
        self.assertEqual(await self.ai.tags_for("CardioSafe-10"), ())
        self.assertEqual(await self.ai.identify_from_image(b"\xff\xd8", CATALOG), "")
        self.assertEqual(await self.ai.ask_admin("stock?", "[]"), ADMIN_UNAVAILABLE)


class FakeClientTestCase(unittest.IsolatedAsyncioTestCase):
    async def test_tags_are_normalized(self):
        models = FakeModels(text=" Cholesterol, Statin ,statin, , Heart \n")
        ai = AIAssistant(client=fake_client(models), model="m1")
        self.assertEqual(
            await ai.tags_for("CardioSafe-10", "Atorvastatin"),
            ("Cholesterol", "Statin", "Heart"),
        )
        model, prompt = models.calls[0]
        self.assertEqual(model, "m1")
        self.assertIn("CardioSafe-10", prompt)
        self.assertIn("Atorvastatin", prompt)

    async def test_summary_includes_catalog(self):
        models = FakeModels(text="  Try CardioSafe-10.  ")
        ai = AIAssistant(client=fake_client(models))
        self.assertEqual(await ai.summarize_query("cholesterol", CATALOG), "Try CardioSafe-10.")
        self.assertIn("CardioSafe-10 (Atorvastatin 10mg)", models.calls[0][1])

    async def test_image_uses_image_model(self):
        models = FakeModels(text="CardioSafe-10")
        ai = AIAssistant(client=fake_client(models), image_model="img")
        self.assertEqual(
            await ai.identify_from_image(b"\x89PNG", CATALOG, "image/png"), "CardioSafe-10"
        )
        model, contents = models.calls[0]
        self.assertEqual(model, "img")
        self.assertEqual(len(contents), 2)
        self.assertIn("CardioSafe-10", contents[1])

    async def test_provider_error_falls_back(self):
        ai = AIAssistant(client=fake_client(FakeModels(error=RuntimeError("quota"))))
        self.assertEqual(await ai.caption(CATALOG[0]), CAPTION_UNAVAILABLE)
        self.assertEqual(await ai.tags_for("x"), ())

    async def test_timeout_falls_back(self):
        ai = AIAssistant(client=fake_client(FakeModels(text="late", delay=1)), timeout=0.01)
        self.assertEqual(await ai.summarize_query("q", CATALOG), SUMMARY_UNAVAILABLE)

    async def test_empty_answer(self):
        ai = AIAssistant(client=fake_client(FakeModels(text=None)))
        self.assertEqual(await ai.caption(CATALOG[0]), CAPTION_UNAVAILABLE)
        self.assertEqual(await ai.identify_from_image(b"", CATALOG), "")


class CatalogContextTestCase(unittest.TestCase):
    def test_context_lines(self):
        lines = catalog_context(CATALOG).splitlines()
        self.assertEqual(len(lines), 2)
        self.assertTrue(lines[0].startswith("- CardioSafe-10 (Atorvastatin 10mg): Cardiac"))
        self.assertIn("Marketing Inputs", lines[1])


if __name__ == "__main__":
    unittest.main()
