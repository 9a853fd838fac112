"""Reconciliation loop component."""

from .reconciler import RouteReconciler, ReconcileResult

__all__ = ['RouteReconciler', 'ReconcileResult']
