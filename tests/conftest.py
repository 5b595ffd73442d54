from datetime import datetime

import pytest

from qos_dashboard.models import CUSTOMER, Complaint, Delivery


@pytest.fixture
def make_complaint():
    """Factory for Complaint records keyed by site and month."""
    counter = iter(range(1, 10_000))

    def _make(ntype="Q1", site="101", month=(2025, 3), parts=0.0, **kwargs):
        number = kwargs.pop("notification_number", f"{next(counter):07d}")
        return Complaint(
            id=f"{site}-{number}",
            notification_number=number,
            notification_type=ntype,
            plant_code=site,
            site_code=site,
            created_on=datetime(month[0], month[1], 10),
            defective_parts=parts,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_delivery():
    """Factory for already-folded Delivery records."""

    def _make(quantity, site="101", month="2025-03", kind=CUSTOMER, site_name=None):
        return Delivery(
            id=f"{site}-{site}-{month}-{kind}",
            plant_code=site,
            site_code=site,
            month=month,
            quantity=quantity,
            kind=kind,
            site_name=site_name,
        )

    return _make


@pytest.fixture
def complaint_headers():
    return [
        "Notification", "Notification Type", "Plant", "Created On",
        "Defective Parts", "Unit of Measure", "Material Description",
    ]
