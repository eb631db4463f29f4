"""Table inventory models."""

from __future__ import annotations

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class ActiveTableManager(models.Manager):
    def get_queryset(self):  # type: ignore
        return super().get_queryset().filter(is_active=True)


class Table(models.Model):
    """A physical table members can reserve."""

    name = models.CharField(_("Name"), max_length=100, unique=True)
    description = models.TextField(_("Description"), blank=True)
    is_active = models.BooleanField(
        _("Bookable"),
        default=True,
        help_text=_("Inactive tables keep their history but accept no new reservations."),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = models.Manager()
    bookable = ActiveTableManager()

    class Meta:
        verbose_name = _("Table")
        verbose_name_plural = _("Tables")
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name
