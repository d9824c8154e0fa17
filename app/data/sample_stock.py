# app/data/sample_stock.py
"""Starter stock list loaded into an empty database when SEED_SAMPLE_DATA is on."""

from app.schemas.stock import StockItemCreate

SAMPLE_STOCK = [
    StockItemCreate(reference="GL-100", name="Latex gloves (box of 100)", current_stock=45, pending_arrival=0, threshold=50, unit="boxes", location="Cabinet A1", supplier="MediSupply"),
    StockItemCreate(reference="MK-050", name="Surgical masks (box of 50)", current_stock=120, pending_arrival=0, threshold=100, unit="boxes", location="Cabinet A1", supplier="MediSupply"),
    StockItemCreate(reference="SY-005", name="Syringes 5ml", current_stock=8, pending_arrival=50, threshold=100, unit="units", location="Cabinet B2", supplier="InjectCare"),
    StockItemCreate(reference="ND-21G", name="Needles 21G", current_stock=150, pending_arrival=0, threshold=200, unit="units", location="Cabinet B2", supplier="InjectCare"),
    StockItemCreate(reference="CP-1010", name="Sterile compresses 10x10", current_stock=300, pending_arrival=0, threshold=200, unit="units", location="Cabinet C1"),
    StockItemCreate(reference="TP-5M", name="Adhesive tape 5m", current_stock=25, pending_arrival=0, threshold=30, unit="rolls", location="Cabinet C1"),
    StockItemCreate(reference="PV-500", name="Povidone-iodine 500ml", current_stock=18, pending_arrival=10, threshold=20, unit="bottles", location="Cabinet D1", supplier="PharmaDirect"),
    StockItemCreate(reference="AL-70", name="Alcohol 70% 1L", current_stock=35, pending_arrival=0, threshold=25, unit="bottles", location="Cabinet D1", supplier="PharmaDirect"),
    StockItemCreate(reference="TH-DIG", name="Digital thermometers", current_stock=12, pending_arrival=0, threshold=15, unit="units", location="Drawer E1"),
    StockItemCreate(reference="BP-MON", name="Blood pressure monitors", current_stock=5, pending_arrival=0, threshold=8, unit="units", location="Drawer E1"),
    StockItemCreate(reference="PA-500", name="Paracetamol 500mg (box of 20)", current_stock=80, pending_arrival=0, threshold=100, unit="boxes", location="Pharmacy F1", supplier="PharmaDirect"),
    StockItemCreate(reference="IB-400", name="Ibuprofen 400mg (box of 20)", current_stock=65, pending_arrival=0, threshold=80, unit="boxes", location="Pharmacy F1", supplier="PharmaDirect"),
    StockItemCreate(reference="SL-500", name="Saline solution 500ml", current_stock=200, pending_arrival=0, threshold=150, unit="bags", location="Cabinet G1"),
    StockItemCreate(reference="IV-20G", name="IV catheters 20G", current_stock=45, pending_arrival=0, threshold=100, unit="units", location="Cabinet G1", supplier="InjectCare"),
    StockItemCreate(reference="BD-100", name="Adhesive bandages (box of 100)", current_stock=40, pending_arrival=0, threshold=50, unit="boxes", location="Cabinet C1"),
]
