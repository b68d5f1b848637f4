"""Background jobs and Celery tasks."""
