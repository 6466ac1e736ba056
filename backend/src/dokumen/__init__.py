"""Dokumen module for uploading and removing application documents"""
