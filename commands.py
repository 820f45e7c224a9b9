
# Quick reference commands (run from repo root). These are comments only; copy/paste as needed.

# Install the project with test dependencies
# python -m pip install -e ".[test]"
# python -m playwright install chromium

# Run the full test suite (uses a temporary sqlite database, no network)
# python -m pytest

# Run focused test files
# python -m pytest tests/test_address_parser.py tests/test_schedule_extractor.py
# python -m pytest tests/test_geocoding.py tests/test_rate_limit.py
# python -m pytest tests/test_reconciler.py tests/test_change_detector.py
# python -m pytest tests/test_notifier.py tests/test_delivery.py tests/test_cycle.py
# python -m pytest tests/test_analyzer.py tests/test_history.py tests/test_stores.py
# python -m pytest tests/test_api.py tests/test_security_headers.py

# Start the API locally (with env vars loaded)
# python -m dotenv run -- python -m uvicorn app.api:app --reload

# Run the worker loop (live scraping every CHECK_INTERVAL seconds)
# python -m dotenv run -- python -m worker.main

# Run a single cycle and exit
# RUN_ONCE=true python -m dotenv run -- python main.py

# Inspect the database (example queries)
# python scripts/db_shell.py "SELECT id,address,start_date,end_date FROM camera_deployments ORDER BY id DESC LIMIT 10"
# python scripts/db_shell.py "SELECT * FROM notification_state"
# python scripts/debug_deployments.py

# History maintenance
# python scripts/backfill_coordinates.py
# python scripts/import_history.py records.json
# python scripts/import_history.py --split-combined
# python scripts/populate_stationary.py
