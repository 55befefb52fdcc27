"""RFID time clock package.

Organised by feature modules (employees, ledger, engine, intake, reports)
with a thin Flask controller layer on top of service/repository layers.
"""
