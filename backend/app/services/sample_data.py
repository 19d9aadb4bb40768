from __future__ import annotations

from app.schemas.entities import CampaignRow, Dataset, EventRow, EventTargetRow, StoreRow

SAMPLE_EVENTS = [
    EventRow(
        event_id="E001",
        event_name="Viral deals",
        description="Ofertas virales para empuje de volumen",
        start_date="2026-03-03",
        end_date="2026-03-09",
        status="Planned",
        target_promos=300,
        target_stores=200,
    ),
    EventRow(
        event_id="E002",
        event_name="Platazos",
        description="Promos fuertes en platos completos (alto AOV)",
        start_date="2026-03-07",
        end_date="2026-03-13",
        status="Planned",
        target_promos=220,
        target_stores=160,
    ),
    EventRow(
        event_id="E003",
        event_name="100 off en 300",
        description="Descuento fijo para impulsar conversión",
        start_date="2026-03-15",
        end_date="2026-03-21",
        status="Planned",
        target_promos=400,
        target_stores=280,
    ),
    EventRow(
        event_id="E004",
        event_name="Formula 1",
        description="Especial fin de semana de carrera: snacks + comidas",
        start_date="2026-03-20",
        end_date="2026-03-23",
        status="Planned",
        target_promos=180,
        target_stores=140,
    ),
    EventRow(
        event_id="E005",
        event_name="Los mejores desayunos",
        description="Breakfast push: mañanas + fines de semana",
        start_date="2026-02-28",
        end_date="2026-03-05",
        status="Planned",
        target_promos=250,
        target_stores=190,
    ),
]

_CAMPAIGNS = (
    ("C0001", "E001", "ST1001", "2026-02-10"),
    ("C0002", "E001", "ST1001", "2026-02-12"),
    ("C0003", "E001", "ST1002", "2026-02-15"),
    ("C0004", "E001", "ST1003", "2026-02-18"),
    ("C0005", "E001", "ST1004", "2026-02-20"),
    ("C0006", "E002", "ST2001", "2026-02-11"),
    ("C0007", "E002", "ST2002", "2026-02-17"),
    ("C0008", "E002", "ST2002", "2026-02-19"),
    ("C0009", "E002", "ST2003", "2026-02-22"),
    ("C0010", "E003", "ST3001", "2026-02-05"),
    ("C0011", "E003", "ST3002", "2026-02-06"),
    ("C0012", "E003", "ST3002", "2026-02-07"),
    ("C0013", "E003", "ST3003", "2026-02-08"),
    ("C0014", "E004", "ST4001", "2026-02-25"),
    ("C0015", "E004", "ST4002", "2026-02-26"),
    ("C0016", "E004", "ST4002", "2026-03-01"),
    ("C0017", "E005", "ST5001", "2026-02-01"),
    ("C0018", "E005", "ST5002", "2026-02-14"),
    ("C0019", "E005", "ST5002", "2026-02-20"),
    ("C0020", "E005", "ST5003", "2026-03-02"),
)

SAMPLE_CAMPAIGNS = [
    CampaignRow(campaign_id=campaign_id, event_id=event_id, store_id=store_id, created_at=created_at)
    for campaign_id, event_id, store_id, created_at in _CAMPAIGNS
]

# store_id, brand, region, city, commercial, segment, ops_zone, gmv_30d, gmv_7d
_STORES = (
    ("ST1001", "Tacos Don Pepe", "Centro", "Ciudad de México", "Ana López", "SMB", "CDMX-1", "182000", "41000"),
    ("ST1002", "Tacos Don Pepe", "Centro", "Ciudad de México", "Ana López", "SMB", "CDMX-1", "96000", "22000"),
    ("ST1003", "La Esquina", "Centro", "Ciudad de México", "Luis Ortega", "KA", "CDMX-2", "240500", ""),
    ("ST1004", "Sushi Roll", "Occidente", "Guadalajara", "Marta Ruiz", "KA", "GDL-1", "310000", "70500"),
    ("ST1005", "Sushi Roll", "Occidente", "Guadalajara", "Marta Ruiz", "KA", "GDL-1", "150000", "35000"),
    ("ST1006", "La Esquina", "Norte", "Monterrey", "Jorge Salinas", "SMB", "MTY-1", "88000", "19500"),
    ("ST2001", "Pollo Feliz", "Norte", "Monterrey", "Jorge Salinas", "KA", "MTY-1", "275000", "61000"),
    ("ST2002", "Pollo Feliz", "Norte", "Monterrey", "Jorge Salinas", "KA", "MTY-2", "198000", "45000"),
    ("ST2003", "Burger Barrio", "Centro", "Puebla", "Ana López", "SMB", "PUE-1", "67000", "15000"),
    ("ST2004", "Burger Barrio", "Centro", "Puebla", "Ana López", "SMB", "PUE-1", "54000", ""),
    ("ST3001", "Café Central", "Centro", "Ciudad de México", "Luis Ortega", "SMB", "CDMX-2", "45000", "10000"),
    ("ST3002", "Café Central", "Centro", "Ciudad de México", "Luis Ortega", "SMB", "CDMX-2", "51000", "12000"),
    ("ST3003", "Pizza Nonna", "Occidente", "Guadalajara", "Marta Ruiz", "KA", "GDL-2", "132000", "30000"),
    ("ST4001", "Pizza Nonna", "Occidente", "Guadalajara", "Marta Ruiz", "KA", "GDL-2", "128000", "29000"),
    ("ST4002", "Wings Express", "Norte", "Monterrey", "Jorge Salinas", "SMB", "MTY-2", "76000", "17000"),
    ("ST5001", "Desayunos Lupita", "Centro", "Puebla", "Ana López", "SMB", "PUE-1", "39000", "9000"),
    ("ST5002", "Desayunos Lupita", "Centro", "Puebla", "Ana López", "SMB", "PUE-2", "42000", "9800"),
    ("ST5003", "Café Central", "Centro", "Ciudad de México", "Luis Ortega", "SMB", "CDMX-1", "58000", "13500"),
)

SAMPLE_STORES = [
    StoreRow(
        store_id=store_id,
        brand=brand,
        region=region,
        city=city,
        commercial=commercial,
        segment=segment,
        ops_zone=ops_zone,
        gmv_last_30d=gmv_30d,
        gmv_last_7d=gmv_7d or None,
    )
    for store_id, brand, region, city, commercial, segment, ops_zone, gmv_30d, gmv_7d in _STORES
]

SAMPLE_EVENT_TARGETS = [
    EventTargetRow(event_id="E001", store_id=store_id)
    for store_id in ("ST1001", "ST1002", "ST1003", "ST1004", "ST1005", "ST1006")
] + [
    EventTargetRow(event_id="E002", store_id=store_id)
    for store_id in ("ST2001", "ST2002", "ST2003", "ST2004")
]


def sample_dataset() -> Dataset:
    return Dataset(
        events=list(SAMPLE_EVENTS),
        campaigns=list(SAMPLE_CAMPAIGNS),
        stores=list(SAMPLE_STORES),
        event_targets=list(SAMPLE_EVENT_TARGETS),
    )
