"""Permohonan module

Endpoints and lifecycle service for license applications: create and update
drafts, check document completeness, submit and cancel.
"""
