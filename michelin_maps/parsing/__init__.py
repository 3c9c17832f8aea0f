"""Format normalizers for MICHELIN Guide page content."""
