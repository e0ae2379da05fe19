# patrimonio/views.py
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from core.permissions import ReadOnlyOrRole

from .filters import ItemPatrimonioFilter
from .models import ItemPatrimonio
from .serializers import BajaSerializer, ItemPatrimonioSerializer
from .services import inventario


class ItemPatrimonioViewSet(viewsets.ModelViewSet):
    """Inventario de bienes. Solo se listan los activos; DELETE hace baja lógica."""
    queryset = ItemPatrimonio.objects.filter(activo=True)
    serializer_class = ItemPatrimonioSerializer
    permission_classes = [ReadOnlyOrRole.of("ECONOMIA")]
    filterset_class = ItemPatrimonioFilter
    ordering_fields = ["codigo", "nombre", "valor_estimado", "created_at"]

    def perform_create(self, serializer):
        serializer.instance = inventario.crear_item(serializer.validated_data, usuario=self.request.user)

    def perform_update(self, serializer):
        serializer.instance = inventario.actualizar_item(serializer.instance, serializer.validated_data, usuario=self.request.user)

    def destroy(self, request, *args, **kwargs):
        ser = BajaSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        inventario.dar_de_baja(self.get_object(), ser.validated_data["motivo"], usuario=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["get"])
    def resumen(self, request):
        return Response(inventario.resumen())
