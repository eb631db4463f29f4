"""Notifications app package.

Keeps the in-app notification inbox of every member and hands e-mail
delivery to Celery workers.
"""
