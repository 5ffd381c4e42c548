# Overview: Built-in starter data returned by the record store on first run.

from __future__ import annotations

import copy

DEFAULT_PASSWORD = "password"

_PRODUCTS = [
    ("HH164-3243-0", "FILTER(CARTRIDGE,OIL)", 18.50, 13.00, 50, "Filters"),
    ("1J884-3708-0", "CONNECTOR", 5.25, 3.50, 100, "Parts"),
    ("01754-50875", "BOLT,FLANGE", 1.50, 0.80, 200, "Hardware"),
    ("1J883-7301-0", "THERMOSTAT,ASSY", 45.00, 32.00, 15, "Engine"),
    ("5H400-2675-0", "FILTER", 12.00, 8.50, 40, "Filters"),
    ("5H476-2671-2", "COMP.TANK,FUEL", 250.00, 190.00, 5, "Fuel System"),
    ("5H487-5140-0", "SEPARATOR,WATER", 35.00, 25.00, 10, "Fuel System"),
    ("5T057-2560-0", "ASSY FILTER,FUEL", 28.50, 20.00, 20, "Fuel System"),
    ("5T057-2610-3", "CLEANER,AIR", 32.00, 22.50, 15, "Filters"),
    ("5T051-2621-0", "COVER", 25.00, 18.00, 10, "Body"),
    ("5T051-2622-0", "BODY", 150.00, 110.00, 4, "Body"),
    ("5T051-2625-0", "NUT,KNOB", 3.00, 1.50, 50, "Hardware"),
    ("17111-9701-0", "BELT,V", 15.75, 10.00, 30, "Engine"),
    ("5H669-4250-3", "ASSY ALTERNATOR", 185.00, 140.00, 3, "Electrical"),
    ("17123-6301-6", "ASSY STARTER", 195.00, 145.00, 3, "Electrical"),
    ("5T101-4125-2", "RELAY", 12.50, 8.00, 40, "Electrical"),
    ("5H492-4211-0", "ECU (MAIN)", 450.00, 350.00, 2, "Electrical"),
    ("54352-3136-0", "SWITCH", 8.50, 5.00, 35, "Electrical"),
    ("5T089-7530-0", "SWITCH,ASSY(HAND-OPERAT.)", 22.00, 15.00, 12, "Electrical"),
    ("5H601-7320-2", "ASSY MOTOR", 120.00, 85.00, 5, "Electrical"),
    ("1G171-5966-0", "SENSOR(REVOLUTION)", 45.00, 30.00, 8, "Sensors"),
    ("5T057-4213-2", "SENSOR,GRAIN", 55.00, 38.00, 6, "Sensors"),
    ("52200-9951-0", "SWITCH", 9.00, 5.50, 30, "Electrical"),
    ("5T057-4224-2", "SWITCH,CONB", 14.50, 9.00, 20, "Electrical"),
    ("5H476-4121-0", "ASSY METER", 85.00, 60.00, 5, "Electrical"),
    ("5H484-3138-3", "ASSY LAMP,ELECTRIC", 28.00, 19.00, 15, "Electrical"),
    ("5H484-3139-2", "BULB", 2.50, 1.00, 100, "Electrical"),
    ("5H492-4295-0", "FUSE(MINI,25A)", 0.75, 0.25, 200, "Electrical"),
    ("5H492-4294-0", "FUSE(MINI,20A)", 0.75, 0.25, 200, "Electrical"),
]

INITIAL_PRODUCTS = [
    {"id": pid, "name": name, "price": price, "costPrice": cost, "stock": stock, "category": category}
    for pid, name, price, cost, stock, category in _PRODUCTS
]

INITIAL_CUSTOMERS = [
    {"id": "C1", "name": "John Doe", "phone": "555-0123", "email": "john@example.com", "totalSpent": 0},
]

# Plaintext on purpose: verify_password accepts it and upgrades to bcrypt on first login.
INITIAL_USERS = [
    {"id": "1", "name": "Owner", "username": "admin", "password": DEFAULT_PASSWORD, "role": "admin"},
    {"id": "2", "name": "Manager", "username": "manager", "password": DEFAULT_PASSWORD, "role": "manager"},
]

DEFAULT_SETTINGS = {
    "storeName": "SM International",
    "address": "123 Business Road, Dhaka, Bangladesh",
    "phone": "+880 1700-000000",
    "email": "info@sminternational.com",
    "footerMessage": "Thank you for your business! Please come again.",
    "autoBackup": False,
    "googleDriveConnected": False,
}


def seed(collection: list | dict) -> list | dict:
    """Fresh deep copy so callers can mutate seed data freely."""
    return copy.deepcopy(collection)
