"""Domain types shared by the scraper, the extractors and the repository."""
