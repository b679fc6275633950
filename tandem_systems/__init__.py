"""
Tandem Facility Systems Toolkit.

Fetches sparse element records from the Autodesk Tandem API and resolves
which elements of which models belong to each system of a facility.

Usage:
    from tandem_systems.api import TandemClient, FacilityScanSource
    from tandem_systems.systems import resolve_facility_systems

    client = TandemClient(access_token=token)
    source = FacilityScanSource(client, facility_urn)
    systems = resolve_facility_systems(source)
"""

__version__ = "0.3.0"
