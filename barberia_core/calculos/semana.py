# barberia_core/calculos/semana.py
# Ventana semanal de trabajo: lunes 00:00 a sábado 23:59:59.999999 (el domingo no se reporta).

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import List, Union

DIAS_LABORABLES = 6

# weekday(): 0=Lunes ... 5=Sábado
NOMBRES_DIAS = ("Lunes", "Martes", "Miércoles", "Jueves", "Viernes", "Sábado")


def ahora() -> datetime:
    """
    Reloj único de la barbería: hora local sin zona horaria.
    Los registros, /hoy y la semana actual se calculan con este reloj.
    """
    return datetime.now()


def hoy() -> date:
    return ahora().date()


def a_hora_local(momento: datetime) -> datetime:
    """
    Pasa una fecha con zona a hora local naive. Las naive se toman como locales.
    """
    if momento.tzinfo is not None:
        return momento.astimezone().replace(tzinfo=None)
    return momento


@dataclass(frozen=True)
class VentanaSemana:
    inicio: datetime
    fin: datetime

    def dias(self) -> List[date]:
        primero = self.inicio.date()
        return [primero + timedelta(days=i) for i in range(DIAS_LABORABLES)]

    def contiene(self, momento: datetime) -> bool:
        return self.inicio <= momento <= self.fin

    def etiqueta(self) -> str:
        return f"{self.inicio:%d/%m/%Y} - {self.fin:%d/%m/%Y}"


def ventana_semana(referencia: Union[date, datetime]) -> VentanaSemana:
    """
    Devuelve la ventana lunes-sábado de la semana que contiene `referencia`.
    Un domingo pertenece a la semana del lunes anterior.
    """
    dia = referencia.date() if isinstance(referencia, datetime) else referencia
    lunes = dia - timedelta(days=dia.weekday())
    sabado = lunes + timedelta(days=DIAS_LABORABLES - 1)
    return VentanaSemana(
        inicio=datetime.combine(lunes, time.min),
        fin=datetime.combine(sabado, time.max),
    )


def nombre_dia(dia: date) -> str:
    """
    Nombre del día en español, capitalizado. El domingo no es laborable
    pero igual tiene nombre.
    """
    if dia.weekday() == 6:
        return "Domingo"
    return NOMBRES_DIAS[dia.weekday()]
