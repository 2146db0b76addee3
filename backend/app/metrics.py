"""
Prometheus metrics shared by the HTTP layer and the CSV loader.
"""

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter('http_requests_total', 'Total HTTP requests', ['method', 'endpoint', 'status'])
REQUEST_DURATION = Histogram('http_request_duration_seconds', 'HTTP request duration')
CSV_UPLOADS = Counter('csv_uploads_total', 'CSV uploads by outcome', ['program', 'mode', 'outcome'])
CSV_ROWS_INGESTED = Counter('csv_rows_ingested_total', 'Rows written from CSV uploads', ['program'])
CSV_LOAD_DURATION = Histogram('csv_load_duration_seconds', 'Time spent loading one CSV file', ['program'])
