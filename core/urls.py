from accounts import views as account_views
from core import views as core_views
from django.contrib import admin
from django.urls import path
from performance import views as performance_views

urlpatterns = [
    path("admin/", admin.site.urls),
    # public
    path("api/public/overview", performance_views.overview),
    path("api/public/positions", performance_views.positions),
    path("api/public/principal", performance_views.public_principal),
    path("api/public/share-price", performance_views.public_share_price),
    path("api/public/wtd-adjustments", performance_views.public_wtd_adjustments),
    # admin session
    path("api/admin/login", core_views.admin_login),
    path("api/admin/logout", core_views.admin_logout),
    path("api/admin/me", core_views.admin_me),
    # admin
    path("api/admin/share-price", performance_views.admin_share_price),
    path("api/admin/principal", performance_views.admin_principal),
    path("api/admin/wtd-adjustments", performance_views.admin_wtd_adjustments),
    path("api/admin/deposit-requests", account_views.deposit_requests),
    path("api/admin/investor-deposit", account_views.investor_deposit),
    path("api/admin/execute-deposits", account_views.execute_deposits),
    path("api/admin/execute-withdrawals", account_views.execute_withdrawals),
    path("api/admin/withdraw-queue", account_views.withdraw_queue),
    # investor
    path("api/investor/me", account_views.investor_me),
    path("api/investor/deposit-requests", account_views.investor_create_deposit),
    path(
        "api/investor/deposit-requests/<int:request_id>/cancel",
        account_views.investor_cancel_deposit,
    ),
    path("api/investor/withdraw-requests", account_views.investor_create_withdraw),
    path(
        "api/investor/withdraw-requests/<int:request_id>/cancel",
        account_views.investor_cancel_withdraw,
    ),
]
