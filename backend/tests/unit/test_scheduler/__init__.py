"""Scheduler tests"""
