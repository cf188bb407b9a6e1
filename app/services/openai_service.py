# app/services/openai_service.py
import logging
from typing import Optional, Dict, Any, List
from flask import Flask
from openai import OpenAI, OpenAIError

from app.core.errors import UpstreamError


class OpenAIService:
    """
    OpenAI API 연동을 담당하는 서비스 클래스.
    여행 일정에 곁들일 짧은 소개 문구를 생성합니다.
    API 키가 없으면 비활성 상태로 동작하며, 이때 생성 결과는 항상 None 입니다.
    """

    def __init__(self):
        """
        OpenAI 클라이언트를 None으로 초기화합니다.
        실제 클라이언트는 init_app 메서드를 통해 설정됩니다.
        """
        self.client = None
        self.model = None

    def init_app(self, app: Flask):
        """
        Flask 앱 초기화 과정에서 호출되어 OpenAI 클라이언트를 설정합니다.

        :param app: Flask 애플리케이션 객체
        """
        api_key = app.config.get('OPENAI_API_KEY')
        self.model = app.config.get('OPENAI_MODEL', 'gpt-4o-mini')
        if not api_key:
            logging.warning("OpenAIService: OPENAI_API_KEY 가 없어 일정 요약 생성을 사용하지 않습니다.")
            return

        self.client = OpenAI(api_key=api_key)
        logging.info("OpenAIService: OpenAI API 서비스가 성공적으로 초기화되었습니다.")

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def generate_itinerary_summary(self, destination: str, duration: int, budget: str,
                                   interests: List[str], daily_activities: List[Dict[str, Any]]) -> Optional[str]:
        """
        생성된 일정을 바탕으로 3~4문장의 여행 소개 문구를 만듭니다.

        :return: 생성된 문구. 서비스가 비활성 상태면 None
        :raises UpstreamError: OpenAI API 호출 실패
        """
        if not self.enabled:
            return None

        prompt = self._build_itinerary_prompt(destination, duration, budget, interests, daily_activities)
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": "You are a friendly travel planner. Answer in plain text."},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=300,
            )
        except OpenAIError as e:
            logging.error(f"OpenAI 일정 요약 생성 실패: {e}", exc_info=True)
            raise UpstreamError("일정 요약 생성 중 오류가 발생했습니다.")

        content = response.choices[0].message.content
        return content.strip() if content else None

    @staticmethod
    def _build_itinerary_prompt(destination: str, duration: int, budget: str,
                                interests: List[str], daily_activities: List[Dict[str, Any]]) -> str:
        lines = [
            f"Destination: {destination}",
            f"Duration: {duration} days",
            f"Budget: {budget}",
            f"Interests: {', '.join(interests) if interests else 'none specified'}",
        ]
        for day_plan in daily_activities:
            names = [a['name'] for a in day_plan['activities'] if a.get('type') != 'meal']
            lines.append(f"Day {day_plan['day']}: {', '.join(names) if names else 'free time'}")
        lines.append("Write a short, upbeat 3-4 sentence overview of this trip.")
        return "\n".join(lines)
