"""
URL configuration for administrative API endpoints.
"""

from django.urls import path

from api.v1.admin import views

urlpatterns = [
    path("orders/completed", views.OrderCompletedView.as_view(), name="order-completed"),
    path("licenses", views.IssueLicenseView.as_view(), name="issue-license"),
    path("licenses/batch", views.IssueBatchView.as_view(), name="issue-license-batch"),
    path("licenses/stats", views.LicenseStatsView.as_view(), name="license-stats"),
    path("licenses/expiring", views.ExpiringLicensesView.as_view(), name="expiring-licenses"),
    path("licenses/<str:license_key>", views.LicenseDetailView.as_view(), name="license-detail"),
    path(
        "licenses/<str:license_key>/activations",
        views.LicenseActivationsView.as_view(),
        name="license-activations",
    ),
    path("licenses/<str:license_key>/file", views.LicenseFileView.as_view(), name="license-file"),
    path(
        "licenses/<str:license_key>/revoke",
        views.RevokeLicenseView.as_view(),
        name="revoke-license",
    ),
    path(
        "licenses/<str:license_key>/suspend",
        views.SuspendLicenseView.as_view(),
        name="suspend-license",
    ),
    path(
        "licenses/<str:license_key>/reactivate",
        views.ReactivateLicenseView.as_view(),
        name="reactivate-license",
    ),
    path(
        "licenses/<str:license_key>/extend",
        views.ExtendLicenseView.as_view(),
        name="extend-license",
    ),
    path(
        "licenses/<str:license_key>/transfer",
        views.TransferLicenseView.as_view(),
        name="transfer-license",
    ),
    path(
        "licenses/<str:license_key>/overrides",
        views.LicenseOverridesView.as_view(),
        name="license-overrides",
    ),
    path("licenses/<str:license_key>/trial", views.StartTrialView.as_view(), name="start-trial"),
    path(
        "licenses/<str:license_key>/convert-trial",
        views.ConvertTrialView.as_view(),
        name="convert-trial",
    ),
    path(
        "licenses/<str:license_key>/grace-period",
        views.GracePeriodView.as_view(),
        name="grace-period",
    ),
    path(
        "subscriptions/<uuid:subscription_id>/renew",
        views.RenewSubscriptionView.as_view(),
        name="renew-subscription",
    ),
    path(
        "subscriptions/<uuid:subscription_id>/cancel",
        views.CancelSubscriptionView.as_view(),
        name="cancel-subscription",
    ),
]
