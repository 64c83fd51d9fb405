def remote_unavailable_notice(error) -> str:
    return f"⚠️ _ไม่สามารถเชื่อมต่อ AI ได้ ({error}) ใช้ข้อมูลในระบบแทน_\n\n"


def exhausted_error_message(error) -> str:
    return (
        "⚠️ ขออภัย ไม่สามารถตอบคำถามนี้ได้ในขณะนี้\n\n"
        f"รายละเอียด: {error}\n\n"
        'ลองถามใหม่ หรือพิมพ์ "ช่วย" เพื่อดูสิ่งที่ผมทำได้ครับ'
    )
