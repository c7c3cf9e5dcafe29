from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'expenses'

# Router for ViewSets
router = DefaultRouter()
router.register(r'', views.ExpenseViewSet, basename='expense')

urlpatterns = [
    # GET    /api/expenses/group/{group_id}/  - List group expenses
    # POST   /api/expenses/group/{group_id}/  - Record expense
    path('group/<uuid:group_id>/', views.group_expenses, name='group-expenses'),

    # Expense ViewSet routes
    # GET    /api/expenses/{id}/              - Get expense details
    path('', include(router.urls)),
]
