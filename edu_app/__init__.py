"""
API abonnements et quotas
"""
