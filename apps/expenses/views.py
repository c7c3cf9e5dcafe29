from rest_framework import viewsets, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from .serializers import (
    ExpenseSerializer,
    ExpenseCreateSerializer,
    ExpenseListSerializer,
)
from apps.expenses.services import (
    record_expense,
    list_group_expenses,
    get_expense,
    # Exceptions
    InvalidSplitError,
    ExpenseNotFoundError,
)
from apps.groups.services import GroupNotFoundError, NotMemberError, require_membership


class ExpenseViewSet(viewsets.GenericViewSet):
    """
    Read access to single expenses.

    Expenses are immutable: there is no update or delete.

    retrieve: Get an expense (members of its group only)
    """

    serializer_class = ExpenseSerializer
    permission_classes = [IsAuthenticated]

    def retrieve(self, request, pk=None):
        """Get a specific expense."""
        try:
            expense = get_expense(expense_id=pk, user=request.user)
        except ExpenseNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except NotMemberError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

        serializer = ExpenseSerializer(expense)
        return Response(serializer.data)


@extend_schema(
    methods=['GET'],
    responses={200: ExpenseListSerializer(many=True)},
    description="List a group's expenses, newest first.",
    tags=['expenses'],
)
@extend_schema(
    methods=['POST'],
    request=ExpenseCreateSerializer,
    responses={201: ExpenseSerializer},
    description="Record an expense paid by the current user. The payer is always part of the split.",
    tags=['expenses'],
)
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def group_expenses(request, group_id):
    """List or record expenses for a group."""
    if request.method == 'GET':
        try:
            expenses = list_group_expenses(group_id=group_id, user=request.user)
        except GroupNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except NotMemberError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

        serializer = ExpenseListSerializer(expenses, many=True)
        return Response(serializer.data)

    try:
        # Membership is checked before the body is validated
        require_membership(group_id=group_id, user=request.user)

        serializer = ExpenseCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        expense = record_expense(
            group_id=group_id,
            description=serializer.validated_data['description'],
            amount=serializer.validated_data['amount'],
            paid_by=request.user,
            split_among=serializer.validated_data['split_among'],
        )
    except GroupNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except NotMemberError as e:
        return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
    except InvalidSplitError as e:
        return Response(
            {'error': str(e), **e.field_errors},
            status=status.HTTP_400_BAD_REQUEST
        )

    output_serializer = ExpenseSerializer(expense)
    return Response(output_serializer.data, status=status.HTTP_201_CREATED)
