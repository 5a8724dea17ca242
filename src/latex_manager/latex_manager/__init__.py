"""Latex Manager package.

Feature modules (users, bills, attendance, delivery) each carry a thin Flask
controller over service/repository layers backed by MySQL.
"""
