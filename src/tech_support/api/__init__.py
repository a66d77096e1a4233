"""HTTP surface for uploading and browsing extracted documents."""
