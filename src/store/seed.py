# demo data loaded at session start; nothing here outlives the session
from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Dict, List

from store.models import (
    Banner,
    CompanySettings,
    Order,
    OrderEvent,
    OrderHistoryItem,
    OrderLine,
    OrderStatus,
    Product,
    Role,
    StockStatus,
    User,
)

INITIAL_DIVISIONS = [
    "Critical Care",
    "Cardiac",
    "Derma",
    "General",
    "Ortho",
    "Pediatric",
]

INITIAL_NEWS = [
    "New Launch: CardioPlus 50mg is now available!",
    "Bulk Order Scheme: Flat 10% off on orders above 5000.",
    "Low Stock Alert: Please update your inventory for FluGo tablets.",
    "Order Complimentary Visual Aids from the new Input Shop!",
]

INITIAL_SETTINGS = CompanySettings(
    name="Janus Biotech India Pvt Ltd",
    address="SCO 123, Sector 82, JLPL Industrial Area, Mohali, Punjab",
    phone="+91-9876543210",
    whatsapp_number="919876543210",
)

INITIAL_BANNERS = [
    Banner(
        id="1",
        headline="Janus Biotech India Pvt. Ltd.",
        subheadline="Empowering Healthcare with 3300+ Products across 18 Specialty Divisions.",
    ),
    Banner(
        id="2",
        headline="Excellence in Critical Care",
        subheadline="Premium Injectables & Life-Saving Formulations for Monopoly Distribution.",
        button_text="View Critical Care List",
        link_division="Critical Care",
    ),
    Banner(
        id="3",
        headline="New Input Shop Live!",
        subheadline="Order Visual Aids, MR Bags, and Gifts directly from the portal.",
        button_text="Visit Input Shop",
        link_division="Marketing Inputs",
    ),
]


def initial_users() -> List[User]:
    return [
        User("1", "admin", "admin123", Role.ADMIN, "Super Admin"),
        User("2", "staff", "staff123", Role.STAFF, "Rahul Sharma"),
        User("3", "distributor", "user123", Role.CUSTOMER, "MediCare Pharma"),
    ]


def initial_products(today: date) -> List[Product]:
    old = today - timedelta(days=91)
    return [
        Product(
            id="1",
            brand_name="CardioSafe-10",
            composition="Atorvastatin 10mg",
            division="Cardiac",
            packing="10x10 Alu-Alu",
            mrp=120,
            stock_status=StockStatus.AVAILABLE,
            visual_aid_url="#",
            landing_cost=45,
            is_trending=True,
            launch_date=old,
            tags=("Cholesterol", "Heart Health", "Cardiac", "Statin"),
        ),
        Product(
            id="2",
            brand_name="DermGlo Cream",
            composition="Ketoconazole 2% + Zinc",
            division="Derma",
            packing="20g Tube",
            mrp=85,
            stock_status=StockStatus.LOW_STOCK,
            video_url="https://youtube.com",
            landing_cost=25,
            is_trending=True,
            launch_date=today,
            tags=("Fungal Infection", "Skin", "Cream", "Itching"),
        ),
        Product(
            id="3",
            brand_name="OrthoFlex Gel",
            composition="Diclofenac + Menthol",
            division="Ortho",
            packing="30g Tube",
            mrp=110,
            landing_cost=30,
            launch_date=old,
            tags=("Pain Relief", "Joint Pain", "Muscle Pain", "Gel"),
        ),
        Product(
            id="4",
            brand_name="CritInject 1g",
            composition="Ceftriaxone 1g Injection",
            division="Critical Care",
            packing="1 Vial + Water",
            mrp=65,
            stock_status=StockStatus.OUT_OF_STOCK,
            landing_cost=22,
            launch_date=old,
            tags=("Antibiotic", "Infection", "Injection", "Critical"),
        ),
        Product(
            id="5",
            brand_name="PediCough Syrup",
            composition="Ambroxol + Levosalbutamol",
            division="Pediatric",
            packing="100ml Bottle",
            mrp=95,
            stock_status=StockStatus.COMING_SOON,
            landing_cost=35,
            launch_date=today,
            tags=("Cough", "Cold", "Kids", "Syrup"),
        ),
        Product(
            id="promo-1",
            brand_name="Visual Aid Folder (2024)",
            is_promotional=True,
            packing="1 Unit",
            mrp=0,
            tags=("Marketing", "Visual Aid", "Folder", "Input"),
        ),
        Product(
            id="promo-2",
            brand_name="MR Reporting Bag (Leather)",
            is_promotional=True,
            packing="1 Unit",
            mrp=850,
            tags=("Bag", "MR Bag", "Gift", "Input"),
        ),
        Product(
            id="promo-3",
            brand_name="Janus Prescription Pads",
            is_promotional=True,
            packing="Pack of 10",
            mrp=0,
            tags=("Stationery", "Prescription", "Input"),
        ),
    ]


def initial_orders(now: datetime, products: List[Product]) -> List[Order]:
    by_id = {p.id: p for p in products}

    def lines(*pairs):
        return tuple(OrderLine(by_id[pid], qty) for pid, qty in pairs)

    dispatched_at = now - timedelta(days=5)
    dispatched_lines = lines(("1", 50), ("3", 20))
    requested_at = now - timedelta(days=1)
    requested_lines = lines(("2", 100))

    return [
        Order(
            id="ORD-1001",
            user_id="3",
            user_name="MediCare Pharma",
            created_at=dispatched_at,
            lines=dispatched_lines,
            status=OrderStatus.DISPATCHED,
            total_inquiry_value=sum(line.line_value for line in dispatched_lines),
            final_payable_amount=7900,
            invoice_url="#",
            docket_number="DTDC-99887766",
            events=(
                OrderEvent(OrderStatus.PENDING, dispatched_at, "3", "Order placed"),
                OrderEvent(OrderStatus.PAYMENT_REQUESTED, dispatched_at, "2"),
                OrderEvent(OrderStatus.DISPATCHED, dispatched_at, "2", "Docket DTDC-99887766"),
            ),
        ),
        Order(
            id="ORD-1002",
            user_id="3",
            user_name="MediCare Pharma",
            created_at=requested_at,
            lines=requested_lines,
            status=OrderStatus.PAYMENT_REQUESTED,
            total_inquiry_value=sum(line.line_value for line in requested_lines),
            final_payable_amount=8200,
            invoice_url="#",
            events=(
                OrderEvent(OrderStatus.PENDING, requested_at, "3", "Order placed"),
                OrderEvent(OrderStatus.PAYMENT_REQUESTED, requested_at, "2"),
            ),
        ),
    ]


def prior_history(now: datetime) -> Dict[str, List[OrderHistoryItem]]:
    """Orders of the demo customer placed before the ledger's window."""

    def ago(days: int) -> datetime:
        return now - timedelta(days=days)

    return {
        "3": [
            OrderHistoryItem(ago(65), "1", 10),
            OrderHistoryItem(ago(35), "1", 10),
            OrderHistoryItem(ago(70), "promo-3", 5),
            OrderHistoryItem(ago(40), "promo-3", 5),
        ]
    }
