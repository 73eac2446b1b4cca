# RestoPOS API Test Suite
#
# End-to-end API tests (pytest + httpx) against the seeded JUVISY demo
# restaurant. Runs in-process over WSGI unless TEST_BACKEND_URL points at a
# running server.
#
# Run with: pytest tests/api -m smoke
