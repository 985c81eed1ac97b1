import unittest
from unittest import mock

from sitecrawler.classifier import LocalClassifier, categorize_batch
from sitecrawler.models import CrawledCategory, CrawledItem, ProcessStep, StepResult, SuggestedCategory
from sitecrawler.pipeline import (
    BatchOrchestrator,
    SiteCrawlerPipeline,
    StopFlag,
    can_categorize,
    iter_batches,
    merge_results,
    needs_step,
    process_in_batches,
)
from sitecrawler.taxonomy import KeywordDictionary, Taxonomy

CLASSIFIER = LocalClassifier(
    Taxonomy.from_rows([(1, "Video", 0), (2, "Asian video", 1)]),
    KeywordDictionary({2: ["asia"]}),
)


def make_items(n, steps=(ProcessStep.CRAWLED, ProcessStep.METADATA)):
    return [
        CrawledItem(
            url=f"https://dir.example/site/{i}",
            title=f"asia site {i}",
            processed_steps=set(steps),
        )
        for i in range(1, n + 1)
    ]


async def categorize(batch):
    return await categorize_batch(batch, CLASSIFIER)


class TestSelection(unittest.TestCase):
    def test_categorize_requires_metadata(self):
        crawled = CrawledItem(url="u", title="t", processed_steps={ProcessStep.CRAWLED})
        enriched = CrawledItem(url="u", title="t", processed_steps={ProcessStep.CRAWLED, ProcessStep.METADATA})
        self.assertFalse(can_categorize(crawled))
        self.assertTrue(can_categorize(enriched))
        self.assertTrue(needs_step(crawled, ProcessStep.METADATA))
        self.assertFalse(needs_step(enriched, ProcessStep.METADATA))

    def test_iter_batches(self):
        self.assertEqual([len(b) for b in iter_batches(list(range(12)), 5)], [5, 5, 2])
        with self.assertRaises(ValueError):
            list(iter_batches([1], 0))


class TestMerge(unittest.TestCase):
    def test_merge_preserves_untouched_fields(self):
        existing = CrawledItem(
            url="u", title="t", description="old", favicon_url="https://x/favicon.ico",
            error="Metadata processing failed: boom",
            processed_steps={ProcessStep.CRAWLED, ProcessStep.METADATA},
        )
        updated = CrawledItem(
            url="u", title="t",
            suggested_categories=[SuggestedCategory(1, "Video")],
            processed_steps={ProcessStep.CATEGORIZED},
        )
        merged = existing.merge(updated)

        self.assertEqual(merged.description, "old")
        self.assertEqual(merged.favicon_url, "https://x/favicon.ico")
        self.assertEqual(merged.suggested_categories, [SuggestedCategory(1, "Video")])
        self.assertIsNone(merged.error)
        self.assertEqual(
            merged.processed_steps,
            {ProcessStep.CRAWLED, ProcessStep.METADATA, ProcessStep.CATEGORIZED},
        )
        # inputs untouched
        self.assertEqual(existing.error, "Metadata processing failed: boom")

    def test_merge_results_adds_unknown_keys(self):
        a, b = make_items(2)
        merged = merge_results({a.key: a}, [b])
        self.assertEqual(list(merged), [a.key, b.key])


class TestPartialUpdates(unittest.IsolatedAsyncioTestCase):
    async def test_listing_fields_survive_partial_step_result(self):
        item = CrawledItem(
            url="https://dir.example/site/1",
            title="Site One",
            url_site="https://real.example/",
            img_url="https://dir.example/img/1.png",
            img_alt="logo",
            processed_steps={ProcessStep.CRAWLED, ProcessStep.METADATA},
        )

        async def partial(batch):
            return StepResult(True, [
                CrawledItem(
                    url=i.url,
                    title=i.title,
                    suggested_categories=[SuggestedCategory(1, "Video")],
                    processed_steps={ProcessStep.CATEGORIZED},
                )
                for i in batch
            ])

        report = await process_in_batches([item], partial)
        merged = report.items[0]

        self.assertEqual(merged.url_site, "https://real.example/")
        self.assertEqual(merged.img_url, "https://dir.example/img/1.png")
        self.assertEqual(merged.img_alt, "logo")
        self.assertEqual(merged.suggested_categories, [SuggestedCategory(1, "Video")])


class TestOrchestrator(unittest.IsolatedAsyncioTestCase):
    async def test_partial_failure_is_retried_on_next_run(self):
        items = make_items(12)
        calls = []

        async def flaky(batch):
            calls.append([i.title for i in batch])
            if any(i.title == "asia site 11" for i in batch):
                return StepResult(False, None, "upstream error")
            return await categorize(batch)

        errors = []
        first = await process_in_batches(
            items, flaky, batch_size=5, step=ProcessStep.CATEGORIZED,
            on_error=lambda n, msg: errors.append((n, msg)),
        )

        self.assertEqual(len(calls), 3)
        self.assertEqual(first.failed_batches, [3])
        self.assertEqual(errors, [(3, "upstream error")])
        by_title = {i.title: i for i in first.items}
        for n in range(1, 11):
            self.assertTrue(by_title[f"asia site {n}"].has_step(ProcessStep.CATEGORIZED))
        for n in (11, 12):
            self.assertFalse(by_title[f"asia site {n}"].has_step(ProcessStep.CATEGORIZED))

        seen = []

        async def recording(batch):
            seen.extend(i.title for i in batch)
            return await categorize(batch)

        second = await process_in_batches(first.items, recording, batch_size=5)
        self.assertEqual(sorted(seen), ["asia site 11", "asia site 12"])
        self.assertTrue(all(i.has_step(ProcessStep.CATEGORIZED) for i in second.items))
        self.assertEqual(len(second.items), 12)

    async def test_already_categorized_items_are_left_alone(self):
        done = make_items(3, steps=(ProcessStep.CRAWLED, ProcessStep.METADATA, ProcessStep.CATEGORIZED))
        for item in done:
            item.suggested_categories = [SuggestedCategory(99, "Manual")]
            item.error = "kept"
        pending = make_items(5)[3:]
        report = await process_in_batches(done + pending, categorize, batch_size=5)

        by_key = {i.key: i for i in report.items}
        for item in done:
            self.assertEqual(by_key[item.key].suggested_categories, [SuggestedCategory(99, "Manual")])
            self.assertEqual(by_key[item.key].error, "kept")
        for item in pending:
            self.assertEqual([c.id for c in by_key[item.key].suggested_categories], [2, 1])
        self.assertEqual(report.total, 2)

    async def test_exception_in_step_is_a_batch_failure(self):
        async def broken(batch):
            raise RuntimeError("network down")

        errors = []
        report = await process_in_batches(
            make_items(7), broken, batch_size=5,
            on_error=lambda n, msg: errors.append(msg),
        )
        self.assertEqual(report.failed_batches, [1, 2])
        self.assertEqual(errors, ["network down", "network down"])
        self.assertFalse(any(i.has_step(ProcessStep.CATEGORIZED) for i in report.items))
        self.assertEqual(len(report.items), 7)

    async def test_stop_flag_ends_run_between_batches(self):
        stop = StopFlag()

        async def stopping(batch):
            stop.set()
            return await categorize(batch)

        report = await process_in_batches(make_items(12), stopping, batch_size=5, stop_flag=stop)
        self.assertTrue(report.stopped)
        self.assertEqual(report.processed, 5)
        self.assertEqual(sum(i.has_step(ProcessStep.CATEGORIZED) for i in report.items), 5)

    async def test_progress_events(self):
        events = []
        await process_in_batches(make_items(7), categorize, batch_size=5, on_progress=events.append)
        self.assertEqual(events[-1].text, "Step 3: Categorize Locally - Finished.")
        self.assertEqual((events[-1].processed, events[-1].total), (7, 7))
        self.assertIn("Processing batch 2 of 2...", events[-2].text)

    async def test_nothing_to_process(self):
        step = mock.AsyncMock()
        items = make_items(2, steps=(ProcessStep.CRAWLED,))
        report = await process_in_batches(items, step, batch_size=5)
        step.assert_not_awaited()
        self.assertEqual(report.total, 0)
        self.assertEqual(len(report.items), 2)

    async def test_delay_between_batches(self):
        with mock.patch("sitecrawler.pipeline.asyncio.sleep", new=mock.AsyncMock()) as sleep:
            orchestrator = BatchOrchestrator(ProcessStep.CATEGORIZED, categorize, batch_size=2, batch_delay=2.0)
            await orchestrator.run(make_items(5))
        self.assertEqual(sleep.await_count, 2)
        sleep.assert_awaited_with(2.0)

    async def test_input_items_not_mutated(self):
        items = make_items(3)
        await process_in_batches(items, categorize, batch_size=5)
        self.assertFalse(any(i.has_step(ProcessStep.CATEGORIZED) for i in items))
        self.assertTrue(all(i.suggested_categories is None for i in items))

    def test_invalid_batch_size(self):
        with self.assertRaises(ValueError):
            BatchOrchestrator(ProcessStep.METADATA, categorize, batch_size=0)


class FakeCrawler:
    async def crawl(self, base_link, max_cards):
        children = [
            CrawledItem(url=f"{base_link}/site/{i}", title=f"site {i}", processed_steps={ProcessStep.CRAWLED})
            for i in range(1, 8)
        ]
        return StepResult(True, [CrawledCategory(f"{base_link}/cat", "Cat", children)], "ok")


class FakeEnricher:
    def __init__(self):
        self.batches = 0

    async def enrich_batch(self, items):
        self.batches += 1
        enriched = []
        for item in items:
            copy = item.copy()
            copy.description = "asia portal"
            copy.mark(ProcessStep.METADATA)
            enriched.append(copy)
        return StepResult(True, enriched, "Metadata processing complete.")


class TestSiteCrawlerPipeline(unittest.IsolatedAsyncioTestCase):
    async def test_full_run_then_resume_is_a_no_op(self):
        enricher = FakeEnricher()
        pipeline = SiteCrawlerPipeline(crawler=FakeCrawler(), enricher=enricher, classifier=CLASSIFIER)
        items = await pipeline.run("https://dir.example", 3)

        self.assertEqual(len(items), 7)
        self.assertEqual(enricher.batches, 2)
        for item in items:
            self.assertEqual(
                item.processed_steps,
                {ProcessStep.CRAWLED, ProcessStep.METADATA, ProcessStep.CATEGORIZED},
            )
            self.assertEqual([c.id for c in item.suggested_categories], [2, 1])
            self.assertEqual(item.category_info["name"], "Cat")

        await pipeline.run()
        self.assertEqual(enricher.batches, 2)

    async def test_caller_stop_flag_stops_between_stages(self):
        stop = StopFlag()
        enricher = FakeEnricher()
        pipeline = SiteCrawlerPipeline(crawler=FakeCrawler(), enricher=enricher, classifier=CLASSIFIER, stop_flag=stop)
        self.assertIs(pipeline.stop_flag, stop)

        original = enricher.enrich_batch

        async def enrich_then_stop(items):
            stop.set()
            return await original(items)

        enricher.enrich_batch = enrich_then_stop
        items = await pipeline.run("https://dir.example", 3)

        self.assertEqual(sum(i.has_step(ProcessStep.METADATA) for i in items), 5)
        self.assertFalse(any(i.has_step(ProcessStep.CATEGORIZED) for i in items))


if __name__ == "__main__":
    unittest.main()
