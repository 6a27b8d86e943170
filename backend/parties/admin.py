from django.contrib import admin

from .models import CompanyProfile, Customer, Vendor


@admin.register(CompanyProfile)
class CompanyProfileAdmin(admin.ModelAdmin):
    list_display = ["company_name", "gstin", "state"]


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ["display_name", "customer_code", "gstin", "place_of_supply", "opening_balance", "is_active"]
    list_filter = ["is_active"]
    search_fields = ["display_name", "company_name", "customer_code", "gstin"]


@admin.register(Vendor)
class VendorAdmin(admin.ModelAdmin):
    list_display = ["display_name", "vendor_code", "gstin", "place_of_supply", "opening_balance", "is_active"]
    list_filter = ["is_active"]
    search_fields = ["display_name", "company_name", "vendor_code", "gstin"]
