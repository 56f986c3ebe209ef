"""Recurring task occurrence expansion for the task manager app."""
