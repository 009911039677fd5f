"""Validation of CODEOWNERS rules against package manifests."""