"""
Crawler configuration
"""

import os

# HTTP settings
USER_AGENT = os.environ.get(
    "SITECRAWLER_USER_AGENT",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36",
)
REQUEST_TIMEOUT = float(os.environ.get("SITECRAWLER_TIMEOUT", "20"))  # seconds
DOMAIN_TIMEOUT = 30.0  # seconds, domain analyzer only

# Listing page selectors
CATEGORY_LINK_SELECTOR = ".category-container a.category-bottom"
SITE_WRAPPER_SELECTOR = ".url_links_wrapper"
SITE_REVIEW_SELECTOR = ".link-details-review"
SITE_LINK_SELECTOR = ".url_link_title a.link"

# Short-link hosts that must be followed before fetching metadata
REDIRECT_HOSTS = ("pdude.link",)

# Batch processing
PROCESSING_BATCH_SIZE = 5  # metadata + categorization
DOMAIN_BATCH_SIZE = 20
DOMAIN_BATCH_DELAY = 2.0  # seconds between domain analysis batches

# Error messages stored on items
NO_MATCH_ERROR = "No matching keywords found."
ERROR_MESSAGE_LIMIT = 100

# Output paths
STATE_FILE = os.environ.get("SITECRAWLER_STATE", "data/crawled.json")
EXPORT_FILE = "crawled_data_final.json"
