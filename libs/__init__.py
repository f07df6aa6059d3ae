"""Shared libraries"""
