"""Checks of package manifests against stack versions, LogsDB and subscriptions."""