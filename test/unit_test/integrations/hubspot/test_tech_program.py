"""Unit tests for mapping HubSpot contacts onto TECH contractors."""

from namc_portal.core.models.io.tech import TechContractorStatus
from namc_portal.integrations.hubspot.models import HubSpotObject
from namc_portal.integrations.hubspot.tech_program import contact_to_tech_contractor


def make_contact(**properties) -> HubSpotObject:
    return HubSpotObject.model_validate({"id": "77", "properties": properties, "createdAt": "2026-03-01T08:00:00Z"})


class TestContactMapping:
    def test_full_contact(self):
        contractor = contact_to_tech_contractor(
            make_contact(
                email="tess@heatpumps.example",
                firstname="Tess",
                lastname="Heat",
                company="Heat Pump Pros",
                phone="510-555-0199",
                tech_program_status="inactive",
                tech_certifications=" HVAC ,, Heat Pump ",
            )
        )

        assert contractor.id == contractor.hubspot_id == "77"
        assert contractor.name == "Tess Heat"
        assert contractor.status is TechContractorStatus.INACTIVE
        assert contractor.certifications == ["HVAC", "Heat Pump"]
        assert contractor.created_at.year == 2026
        assert contractor.updated_at is None

    def test_name_falls_back_to_email(self):
        contractor = contact_to_tech_contractor(make_contact(email="solo@example.com", firstname=None))

        assert contractor.name == "solo@example.com"
        assert contractor.certifications == []
        assert contractor.status is TechContractorStatus.PENDING
