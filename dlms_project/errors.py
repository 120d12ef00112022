# dlms_project/errors.py

import logging

from django.contrib import messages

logger = logging.getLogger(__name__)

DATABASE_ERROR_MESSAGE = "Database Error: the operation could not be completed. Please try again."


def report_database_error(request, exc, description=None):
    """
    Logs a failed repository call and tells the user through a flash
    message. Nothing is retried.
    """
    logger.error("Database error on %s %s: %s", request.method, request.path, exc)
    messages.error(request, description or DATABASE_ERROR_MESSAGE)
