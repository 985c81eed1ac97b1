import unittest

import aiohttp

from sitecrawler.fetch import Page
from sitecrawler.models import ProcessStep, flatten_categories
from sitecrawler.site_crawler import SiteCrawler, parse_category_links, parse_category_page

FRONT_PAGE = """
<html><body>
  <div class="category-container">
    <a class="category-bottom" href="/cat/asian">Asian Tubes</a>
    <a class="category-bottom" href="https://dir.example/cat/live">Live Cams</a>
    <a class="category-bottom">No link</a>
  </div>
</body></html>
"""

CATEGORY_PAGE = """
<html><body>
  <div class="url_links_wrapper">
    <div class="url_link_title">
      <a class="link" href="https://dir.example/site/one" data-site-link="https://pdude.link/one">Site One</a>
    </div>
    <div class="link-details-review"><p>Great <b>asian</b> tube</p></div>
  </div>
  <div class="url_links_wrapper">
    <div class="url_link_title">
      <a class="link" href="/site/two">Site Two</a>
      <a class="link" href="">Empty</a>
    </div>
  </div>
</body></html>
"""


class StubCrawler(SiteCrawler):
    def __init__(self, pages):
        super().__init__(session=object())
        self.pages = pages
        self.fetched = []

    async def _fetch(self, session, url):
        self.fetched.append(url)
        page = self.pages.get(url)
        if isinstance(page, Exception):
            raise page
        if page is None:
            return Page(url, url, 404, "Not Found")
        return Page(url, url, 200, "OK", "text/html", page)


class TestParsers(unittest.TestCase):
    def test_category_links(self):
        links = parse_category_links(FRONT_PAGE, "https://dir.example/zh")
        self.assertEqual(links, [
            ("https://dir.example/cat/asian", "Asian Tubes"),
            ("https://dir.example/cat/live", "Live Cams"),
        ])

    def test_category_page_children(self):
        children = parse_category_page(CATEGORY_PAGE, "https://dir.example/cat/asian")
        self.assertEqual([c.title for c in children], ["Site One", "Site Two"])

        one, two = children
        self.assertEqual(one.url_site, "https://pdude.link/one")
        self.assertEqual(one.description, "Great asian tube")
        self.assertIn("<b>asian</b>", one.content)
        self.assertEqual(one.processed_steps, {ProcessStep.CRAWLED})

        self.assertEqual(two.url, "https://dir.example/site/two")
        self.assertEqual(two.url_site, "")
        self.assertEqual(two.description, "")


class TestSiteCrawler(unittest.IsolatedAsyncioTestCase):
    async def test_crawl_collects_categories(self):
        crawler = StubCrawler({
            "https://dir.example/zh": FRONT_PAGE,
            "https://dir.example/cat/asian": CATEGORY_PAGE,
            "https://dir.example/cat/live": aiohttp.ClientError("reset"),
        })
        result = await crawler.crawl("https://dir.example/zh", 10)

        self.assertTrue(result.success)
        self.assertEqual(len(result.data), 1)
        self.assertEqual(result.data[0].cate_name, "Asian Tubes")

        items = flatten_categories(result.data)
        self.assertEqual(len(items), 2)
        self.assertEqual(items[0].category_info, {"name": "Asian Tubes", "url": "https://dir.example/cat/asian"})

    async def test_max_cards_limits_category_pages(self):
        crawler = StubCrawler({
            "https://dir.example/zh": FRONT_PAGE,
            "https://dir.example/cat/asian": CATEGORY_PAGE,
        })
        await crawler.crawl("https://dir.example/zh", 1)
        self.assertEqual(crawler.fetched, ["https://dir.example/zh", "https://dir.example/cat/asian"])

    async def test_front_page_failure(self):
        result = await StubCrawler({}).crawl("https://dir.example/zh", 5)
        self.assertFalse(result.success)
        self.assertEqual(result.message, "Failed to load main page. Status: 404")

    async def test_no_category_links(self):
        result = await StubCrawler({"https://dir.example/zh": "<html></html>"}).crawl("https://dir.example/zh", 5)
        self.assertFalse(result.success)
        self.assertIn("No category links found", result.message)

    async def test_no_children_anywhere(self):
        result = await StubCrawler({"https://dir.example/zh": FRONT_PAGE}).crawl("https://dir.example/zh", 5)
        self.assertFalse(result.success)
        self.assertEqual(result.message, "Could not scrape any app information from the category pages.")

    async def test_input_validation(self):
        crawler = StubCrawler({})
        self.assertFalse((await crawler.crawl("", 5)).success)
        self.assertFalse((await crawler.crawl("https://dir.example", 0)).success)
        self.assertEqual(crawler.fetched, [])


if __name__ == "__main__":
    unittest.main()
